"""
Render Module.

Responsibilities:
- Compositing visible meshes over the camera frame
- Per-tick video texture synchronization
"""

from .renderer import Renderer
from .frame_sync import FrameSync
