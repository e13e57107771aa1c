"""
Asset Module.

Responsibilities:
- Slug validation (before any network call)
- Asset retrieval from the dashboard API
- Callback-based image/texture loading
"""

from .asset_client import AssetClient, slug_from_url, validate_slug, parse_asset_payload
from .texture_loader import TextureLoader, read_image_bytes, decode_image
