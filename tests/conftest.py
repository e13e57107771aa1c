"""Shared fakes for the playback tests."""

from collections import defaultdict

import numpy as np
import pytest

from framerz.core.contracts import GestureRequirement, ReadyState, TrackingEvent
from framerz.core.errors import PlaybackBlocked
from framerz.policy.platform_policy import UserActivation
from framerz.scene.camera import Camera
from framerz.tracking.anchor import Anchor
from framerz.tracking.base import TrackerAdapter


class FakeVideo:
    """Video element double that records calls and honours UserActivation."""

    def __init__(self, width=640, height=360, activation=None, block_play=False):
        self.video_width = width
        self.video_height = height
        self.activation = activation
        self.block_play = block_play
        self.muted = True
        self.paused = True
        self.ready_state = ReadyState.HAVE_NOTHING
        self.current_frame = None
        self.calls = []
        self.closed = False
        self.updates = 0
        self._listeners = defaultdict(list)

    @property
    def aspect_ratio(self):
        return self.video_height / self.video_width if self.video_width else 0.0

    def add_event_listener(self, event, callback):
        self._listeners[event].append(callback)

    def load(self):
        self.ready_state = ReadyState.HAVE_METADATA
        for callback in self._listeners["loadedmetadata"]:
            callback()
        self.current_frame = np.full((self.video_height, self.video_width, 3), 200, np.uint8)
        self.ready_state = ReadyState.HAVE_CURRENT_DATA

    def play(self):
        self.calls.append(("play", self.muted))
        if self.block_play:
            raise PlaybackBlocked("blocked by test")
        if self.activation is not None and not self.activation.allows_playback(self.muted):
            raise PlaybackBlocked("gesture required")
        self.paused = False

    def pause(self):
        self.calls.append(("pause", self.muted))
        self.paused = True

    def update(self):
        self.updates += 1

    def close(self):
        self.closed = True


class FakeTracker(TrackerAdapter):
    """Tracker that replays scripted events, one per processed frame."""

    def __init__(self, events=(), width=640, height=480, start_error=None):
        self.events = list(events)
        self.width = width
        self.height = height
        self.start_error = start_error
        self.anchor = None
        self.camera = None
        self.started = False
        self.stopped = False
        self.frames = 0

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.camera = Camera(self.width, self.height)
        self.started = True

    def stop(self):
        self.stopped = True

    def add_anchor(self, index):
        self.anchor = Anchor(index)
        # Target two units in front of the camera, centered
        self.anchor.group.set_position(0.0, 0.0, 2.0)
        return self.anchor

    def read_frame(self):
        return np.zeros((self.height, self.width, 3), np.uint8)

    def process_frame(self, frame):
        self.frames += 1
        if self.events:
            self.anchor.dispatch(self.events.pop(0))


@pytest.fixture
def anchor():
    a = Anchor(0)
    a.group.set_position(0.0, 0.0, 2.0)
    return a


@pytest.fixture
def camera():
    return Camera(640, 480)


@pytest.fixture
def gesture_video():
    return FakeVideo(activation=UserActivation(GestureRequirement.REQUIRES_GESTURE))


@pytest.fixture
def autoplay_video():
    return FakeVideo(activation=UserActivation(GestureRequirement.AUTOPLAY_ALLOWED))


FOUND = TrackingEvent.FOUND
LOST = TrackingEvent.LOST
