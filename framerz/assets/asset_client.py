"""
Asset retrieval.

Resolves a customer slug to its MediaAsset with a single request to the
dashboard API. The slug gate runs before any network traffic.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlsplit

import httpx
from loguru import logger

from framerz.config import DEFAULT_API_URL
from framerz.core.contracts import MediaAsset
from framerz.core.errors import ConfigError, RetrievalError


SLUG_LENGTH = 6
SLUG_PARAM = "f"


def slug_from_url(page_url: str) -> Optional[str]:
    """Extract the slug from a page URL or bare query string (``?f=ABCDEF``)."""
    if not page_url:
        return None
    query = urlsplit(page_url).query if "://" in page_url else page_url.lstrip("?")
    values = parse_qs(query).get(SLUG_PARAM)
    return values[0] if values else None


def validate_slug(slug: Optional[str]) -> str:
    """Return the slug if it is exactly SLUG_LENGTH characters.

    Raises:
        ConfigError: slug is missing or has the wrong length
    """
    if not slug or len(slug) != SLUG_LENGTH:
        logger.error(f"Invalid or missing slug: {slug!r}")
        raise ConfigError(f"Invalid slug: {slug!r}")
    return slug


def _required_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise RetrievalError(f"Asset payload missing '{key}'")
    return value


def parse_asset_payload(data: Any) -> MediaAsset:
    """Map the API payload onto a MediaAsset.

    Raises:
        RetrievalError: payload is not an object or lacks required URLs
    """
    if not isinstance(data, dict):
        raise RetrievalError("Asset payload is not a JSON object")

    thumbnail = data.get("thumbnail_url")
    customer = data.get("customer_name")

    return MediaAsset(
        mind_url=_required_str(data, "mind_file_url"),
        video_url=_required_str(data, "video_url"),
        thumbnail_url=thumbnail if isinstance(thumbnail, str) and thumbnail else None,
        customer_name=customer if isinstance(customer, str) and customer else None,
    )


class AssetClient:
    """
    Client for the asset endpoint.

    One GET per session: ``{api_url}?slug={slug}``. There is no retry; any
    failure surfaces as RetrievalError.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize asset client.

        Args:
            api_url: Asset endpoint
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (owned by the caller)
        """
        self.api_url = api_url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def fetch(self, slug: Optional[str]) -> MediaAsset:
        """
        Fetch the assets for a slug.

        Args:
            slug: 6-character customer identifier

        Returns:
            MediaAsset for the session

        Raises:
            ConfigError: slug failed validation (no request is made)
            RetrievalError: network failure, non-success status or bad payload
        """
        slug = validate_slug(slug)

        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)

        try:
            response = self._client.get(self.api_url, params={"slug": slug})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching assets: {e}")
            raise RetrievalError(f"Failed to fetch assets: {e}") from e
        except ValueError as e:
            logger.error(f"Asset response is not JSON: {e}")
            raise RetrievalError("Asset response is not JSON") from e

        asset = parse_asset_payload(data)
        logger.info(
            f"Assets loaded for {slug}: video={asset.video_url} "
            f"thumbnail={'yes' if asset.has_thumbnail else 'no'}"
        )
        return asset

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None

    def __enter__(self) -> AssetClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
