"""
Base class for image-target trackers.

To add a new tracker:
1. Create a new file in the tracking/ directory
2. Inherit from TrackerAdapter
3. Implement start(), stop(), add_anchor() and process_frame()
4. Deliver FOUND/LOST through Anchor.dispatch(), one event at a time

Example implementation:
    class ReplayTracker(TrackerAdapter):
        def __init__(self, events):
            self.events = list(events)
            self.anchor = None

        def start(self) -> None:
            pass

        def stop(self) -> None:
            pass

        def add_anchor(self, index: int) -> Anchor:
            self.anchor = Anchor(index)
            return self.anchor

        def process_frame(self, frame) -> None:
            if self.events:
                self.anchor.dispatch(self.events.pop(0))
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from framerz.scene.camera import Camera
from .anchor import Anchor


class TrackerAdapter(ABC):
    """Abstract boundary to an image-recognition / pose-tracking engine.

    The playback core only ever uses start(), add_anchor() and the anchor's
    group and callback slots.

    Attributes:
        camera: Camera whose intrinsics match the tracked frames
    """

    camera: Optional[Camera] = None

    @abstractmethod
    def start(self) -> None:
        """Start tracking.

        Raises:
            CameraPermissionError: camera could not be opened
            RetrievalError: target descriptor could not be loaded
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop tracking and release resources."""
        pass

    @abstractmethod
    def add_anchor(self, index: int) -> Anchor:
        """Create the anchor for target ``index``.

        Returns:
            Anchor with a group node and empty callback slots
        """
        pass

    @abstractmethod
    def process_frame(self, frame: np.ndarray) -> None:
        """Track one RGB camera frame, updating anchors and firing events."""
        pass

    def read_frame(self) -> Optional[np.ndarray]:
        """Return the next camera frame, or None if the tracker has no camera."""
        return None
