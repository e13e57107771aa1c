"""
Core data contracts for the AR video overlay.

All components must adhere to these contracts for:
- A single owner per piece of state
- Deterministic playback transitions
- Explicit, testable policy inputs
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional, Tuple


# ============================================================
# ENUMERATIONS
# ============================================================

class PlaybackState(Enum):
    """Playback lifecycle. Owned exclusively by MediaController."""
    IDLE = "idle"
    AWAITING_GESTURE = "awaiting_gesture"
    PLAYING = "playing"
    PAUSED = "paused"


class OverlayVisibility(Enum):
    """Derived visibility of the tap-to-play overlay."""
    HIDDEN = auto()
    VISIBLE = auto()


class GestureRequirement(Enum):
    """Whether the platform needs a user gesture before unmuted playback."""
    REQUIRES_GESTURE = "requires_gesture"
    AUTOPLAY_ALLOWED = "autoplay_allowed"


class TrackingEvent(Enum):
    """Recognition events delivered by the tracker. Never stored."""
    FOUND = "found"
    LOST = "lost"


class ReadyState(IntEnum):
    """Media readiness levels, ordered so comparisons read naturally."""
    HAVE_NOTHING = 0
    HAVE_METADATA = 1
    HAVE_CURRENT_DATA = 2
    HAVE_FUTURE_DATA = 3
    HAVE_ENOUGH_DATA = 4


# ============================================================
# CORE DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class MediaAsset:
    """
    Assets for one customer experience.

    Fetched once at startup and never mutated afterwards.
    """
    mind_url: str
    video_url: str
    customer_name: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def has_thumbnail(self) -> bool:
        return bool(self.thumbnail_url)


@dataclass(frozen=True)
class PointerEvent:
    """A click or tap in viewport pixel coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class Viewport:
    """Size of the display surface in pixels."""
    width: int
    height: int

    def to_ndc(self, pointer: PointerEvent) -> Tuple[float, float]:
        """Convert pixel coordinates to normalized device coordinates (-1..1, y up)."""
        x = (pointer.x / self.width) * 2 - 1
        y = -(pointer.y / self.height) * 2 + 1
        return (x, y)
