"""
Core contracts for the AR video overlay.

Event flow (NEVER REORDER):
1. Validate slug and retrieve the media asset
2. Classify the platform gesture requirement
3. Start tracking and attach the anchor
4. Load video metadata and build the video plane
5. Drive playback from tracking and unlock events
6. Sync the video texture and render every tick
"""

from .contracts import (
    MediaAsset,
    PlaybackState,
    OverlayVisibility,
    GestureRequirement,
    TrackingEvent,
    PointerEvent,
    Viewport,
)
from .errors import (
    FramerzError,
    ConfigError,
    RetrievalError,
    CameraPermissionError,
    PlaybackBlocked,
    AssetDegradation,
)
