"""
Camera feed for image-target tracking.

The source is a webcam index or, for demos without a camera, a recorded
clip that is replayed in a loop. Frames come out as RGB.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Deque, Optional, Tuple, Union

import cv2
import numpy as np
from numpy.typing import NDArray
from loguru import logger


CameraSource = Union[int, str]

# Frame timestamps kept for the fps estimate
FPS_WINDOW = 30


class VideoCapture:
    """
    Camera capture.

    Guarantees:
    - RGB frames
    - A recorded clip never runs dry (it rewinds at the end)
    - frame_size reports what is actually delivered
    """

    def __init__(
        self,
        device_index: CameraSource = 0,
        width: int = 1280,
        height: int = 720,
        fps: int = 30,
        buffer_frames: int = 1,
    ):
        """
        Initialize capture.

        Args:
            device_index: Camera index, or path/URL of a recorded clip
            width: Requested width (cameras only)
            height: Requested height (cameras only)
            fps: Requested frame rate (cameras only)
            buffer_frames: Driver buffer size; 1 keeps tracking on the newest frame
        """
        self.device_index = device_index
        self.width = width
        self.height = height
        self.fps = fps
        self.buffer_frames = buffer_frames

        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_count = 0
        self._last_size: Optional[Tuple[int, int]] = None
        self._stamps: Deque[float] = deque(maxlen=FPS_WINDOW)

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_index, str) and not self.device_index.isdigit()

    def start(self) -> bool:
        """
        Open the camera or clip.

        Returns:
            False if the source could not be opened
        """
        if self._capture is not None:
            return True

        source = self.device_index if self.is_file else int(self.device_index)
        capture = cv2.VideoCapture(source)
        if not capture.isOpened():
            logger.error(f"Failed to open camera source {self.device_index!r}")
            return False

        if not self.is_file:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            capture.set(cv2.CAP_PROP_FPS, self.fps)
            capture.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_frames)

        self._capture = capture
        width, height = self.frame_size
        kind = "clip" if self.is_file else "camera"
        logger.info(f"Tracking {kind} opened: {width}x{height} @ {capture.get(cv2.CAP_PROP_FPS):.0f}fps")
        return True

    def stop(self) -> None:
        if self._capture is None:
            return
        self._capture.release()
        self._capture = None
        logger.info(f"Camera closed after {self._frame_count} frames")

    def read_frame(self) -> Optional[NDArray[np.uint8]]:
        """
        Read the next frame.

        Returns:
            RGB frame, or None if the camera is closed or delivered nothing
        """
        if self._capture is None:
            return None

        ret, frame = self._capture.read()
        if (not ret or frame is None) and self.is_file:
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, frame = self._capture.read()
        if not ret or frame is None:
            return None

        self._frame_count += 1
        self._stamps.append(time.perf_counter())
        self._last_size = (frame.shape[1], frame.shape[0])
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    @property
    def is_running(self) -> bool:
        return self._capture is not None

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def actual_fps(self) -> float:
        """Delivered frame rate over the last FPS_WINDOW frames."""
        if len(self._stamps) < 2:
            return 0.0
        duration = self._stamps[-1] - self._stamps[0]
        return (len(self._stamps) - 1) / duration if duration > 0 else 0.0

    @property
    def frame_size(self) -> Tuple[int, int]:
        """(width, height) of delivered frames."""
        if self._last_size is not None:
            return self._last_size
        if self._capture is not None:
            return (
                int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )
        return (self.width, self.height)
