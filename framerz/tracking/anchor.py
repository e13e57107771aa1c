"""
Tracker anchor handle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from loguru import logger

from framerz.core.contracts import TrackingEvent
from framerz.scene.graph import Group


@dataclass
class Anchor:
    """
    Attachment point for content that follows an image target.

    The tracker moves ``group`` with the target pose and calls the callback
    slots, which the media controller fills in.
    """
    index: int
    group: Group = field(default_factory=lambda: Group("anchor"))
    on_target_found: Optional[Callable[[], None]] = None
    on_target_lost: Optional[Callable[[], None]] = None

    def dispatch(self, event: TrackingEvent) -> None:
        """Deliver a tracking event to the matching callback slot."""
        logger.debug(f"Anchor {self.index}: target {event.value}")
        callback = self.on_target_found if event is TrackingEvent.FOUND else self.on_target_lost
        if callback is not None:
            callback()
