"""
Video element.

OpenCV-backed stand-in for a browser <video>: natural size, ready state,
loop, and play/pause/mute flags. Unmuted play() requests go through the
session's UserActivation, so the platform's autoplay restriction applies
here the same way it does in a browser.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional

import cv2
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from framerz.core.contracts import ReadyState
from framerz.core.errors import PlaybackBlocked, RetrievalError
from framerz.policy.platform_policy import UserActivation
from .audio_track import AudioTrack


# Frames decoded at most per update() so a stall does not freeze the loop
MAX_CATCH_UP_FRAMES = 5


class VideoElement:
    """
    Video playback element.

    Guarantees:
    - Starts muted and paused
    - RGB frames
    - Audio runs only while playing and unmuted
    """

    def __init__(
        self,
        src: str,
        loop: bool = True,
        muted: bool = True,
        activation: Optional[UserActivation] = None,
        audio: Optional[AudioTrack] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize video element.

        Args:
            src: File path or URL of the video
            loop: Restart at the end
            muted: Initial mute state
            activation: Gesture tracker consulted by play()
            audio: Audio output (None = silent)
            clock: Time source in seconds
        """
        self.src = src
        self.loop = loop
        self.activation = activation
        self.audio = audio
        self._clock = clock

        self._muted = muted
        self._paused = True
        self._ended = False

        self.ready_state = ReadyState.HAVE_NOTHING
        self.video_width = 0
        self.video_height = 0
        self.fps = 30.0
        self.frame_index = 0

        self._capture: Optional[cv2.VideoCapture] = None
        self._current_frame: Optional[NDArray[np.uint8]] = None
        self._last_tick = 0.0
        self._listeners: Dict[str, List[Callable[[], None]]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event_listener(self, event: str, callback: Callable[[], None]) -> None:
        """Register a callback for 'loadedmetadata', 'play', 'pause' or 'ended'."""
        self._listeners[event].append(callback)

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners[event]):
            callback()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Open the source, publish metadata and decode the first frame.

        Raises:
            RetrievalError: source cannot be opened
        """
        self._capture = cv2.VideoCapture(self.src)
        if not self._capture.isOpened():
            self._capture = None
            raise RetrievalError(f"Could not open video: {self.src}")

        self.video_width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.video_height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.fps = self._capture.get(cv2.CAP_PROP_FPS) or 30.0

        logger.info(f"Video metadata: {self.video_width}x{self.video_height} @ {self.fps:.1f}fps")
        self.ready_state = ReadyState.HAVE_METADATA
        self._emit("loadedmetadata")

        if self._read_next():
            self.ready_state = ReadyState.HAVE_CURRENT_DATA

    @property
    def aspect_ratio(self) -> float:
        """Height over width of the natural video size."""
        if not self.video_width:
            return 0.0
        return self.video_height / self.video_width

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool) -> None:
        self._muted = bool(value)
        self._sync_audio()

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def current_frame(self) -> Optional[NDArray[np.uint8]]:
        return self._current_frame

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def current_time(self) -> float:
        return self.frame_index / self.fps if self.fps else 0.0

    def play(self) -> None:
        """
        Request playback.

        Raises:
            PlaybackBlocked: unmuted playback without the required user gesture
        """
        if self.activation is not None and not self.activation.allows_playback(self._muted):
            raise PlaybackBlocked("Unmuted playback requires a user gesture")

        if self._paused:
            self._paused = False
            self._ended = False
            self._last_tick = self._clock()
            self._emit("play")
        self._sync_audio()

    def pause(self) -> None:
        if not self._paused:
            self._paused = True
            self._emit("pause")
        self._sync_audio()

    def update(self) -> None:
        """Advance decoded frames according to elapsed time while playing."""
        if self._paused or self._capture is None:
            return

        now = self._clock()
        due = int((now - self._last_tick) * self.fps)
        if due <= 0:
            return
        self._last_tick += due / self.fps

        for _ in range(min(due, MAX_CATCH_UP_FRAMES)):
            if self._read_next():
                continue
            if not self.loop:
                self._ended = True
                self._paused = True
                self._sync_audio()
                self._emit("ended")
                return
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
            self.frame_index = 0
            if not self._read_next():
                return

        self.ready_state = ReadyState.HAVE_ENOUGH_DATA

    def close(self) -> None:
        self._paused = True
        self._sync_audio()
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        self.ready_state = ReadyState.HAVE_NOTHING

    def _read_next(self) -> bool:
        ret, frame = self._capture.read()
        if not ret or frame is None:
            return False
        self._current_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        self.frame_index += 1
        return True

    def _sync_audio(self) -> None:
        if self.audio is None:
            return
        should_play = not self._paused and not self._muted
        if should_play and not self.audio.is_running:
            self.audio.start(self.current_time)
        elif not should_play and self.audio.is_running:
            self.audio.stop()
