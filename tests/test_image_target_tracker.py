"""Tests for the ORB image-target tracker."""

import cv2
import numpy as np
import pytest

from framerz.core.contracts import TrackingEvent
from framerz.core.errors import CameraPermissionError, RetrievalError
from framerz.tracking.image_target_tracker import ImageTargetTracker


FRAME_H, FRAME_W = 480, 640
TARGET_H, TARGET_W = 240, 320
OFFSET_Y, OFFSET_X = 120, 160


@pytest.fixture
def target_rgb():
    rng = np.random.default_rng(7)
    noise = rng.integers(0, 256, (TARGET_H // 8, TARGET_W // 8, 3), dtype=np.uint8)
    return cv2.resize(noise, (TARGET_W, TARGET_H), interpolation=cv2.INTER_CUBIC)


@pytest.fixture
def target_path(tmp_path, target_rgb):
    path = tmp_path / "target.png"
    cv2.imwrite(str(path), cv2.cvtColor(target_rgb, cv2.COLOR_RGB2BGR))
    return str(path)


def frame_with_target(target_rgb):
    frame = np.full((FRAME_H, FRAME_W, 3), 127, np.uint8)
    frame[OFFSET_Y:OFFSET_Y + TARGET_H, OFFSET_X:OFFSET_X + TARGET_W] = target_rgb
    return frame


def empty_frame():
    return np.full((FRAME_H, FRAME_W, 3), 127, np.uint8)


class FailingCapture:
    device_index = 3

    def start(self):
        return False

    def stop(self):
        pass


def start_tracker(target_path, events, lost_after_frames=3):
    tracker = ImageTargetTracker(target_path, lost_after_frames=lost_after_frames)
    anchor = tracker.add_anchor(0)
    anchor.on_target_found = lambda: events.append(TrackingEvent.FOUND)
    anchor.on_target_lost = lambda: events.append(TrackingEvent.LOST)
    tracker.start()
    return tracker, anchor


def test_found_then_lost(target_path, target_rgb):
    events = []
    tracker, anchor = start_tracker(target_path, events)
    assert anchor.group.visible is False

    tracker.process_frame(frame_with_target(target_rgb))
    assert events == [TrackingEvent.FOUND]
    assert tracker.is_tracking
    assert anchor.group.visible is True

    tracker.process_frame(frame_with_target(target_rgb))
    assert events == [TrackingEvent.FOUND]

    tracker.process_frame(empty_frame())
    tracker.process_frame(empty_frame())
    assert events == [TrackingEvent.FOUND]

    tracker.process_frame(empty_frame())
    assert events == [TrackingEvent.FOUND, TrackingEvent.LOST]
    assert anchor.group.visible is False


def test_single_miss_does_not_lose(target_path, target_rgb):
    events = []
    tracker, _ = start_tracker(target_path, events)

    tracker.process_frame(frame_with_target(target_rgb))
    tracker.process_frame(empty_frame())
    tracker.process_frame(frame_with_target(target_rgb))
    tracker.process_frame(empty_frame())

    assert events == [TrackingEvent.FOUND]


def test_pose_places_target_in_front_of_camera(target_path, target_rgb):
    tracker, anchor = start_tracker(target_path, [])
    tracker.process_frame(frame_with_target(target_rgb))

    translation = anchor.group.matrix[:3, 3]
    # 1 unit wide target spanning 320px with fx=640
    assert translation[2] == pytest.approx(2.0, rel=0.1)
    assert abs(translation[0]) < 0.1
    assert abs(translation[1]) < 0.1
    assert tracker.camera.width == FRAME_W


def test_no_events_without_target(target_path):
    events = []
    tracker, _ = start_tracker(target_path, events)

    for _ in range(5):
        tracker.process_frame(empty_frame())
    assert events == []


def test_missing_target_raises_retrieval_error(tmp_path):
    tracker = ImageTargetTracker(str(tmp_path / "absent.png"))
    with pytest.raises(RetrievalError):
        tracker.start()


def test_featureless_target_raises_retrieval_error(tmp_path):
    path = tmp_path / "flat.png"
    cv2.imwrite(str(path), np.full((100, 100, 3), 90, np.uint8))

    with pytest.raises(RetrievalError):
        ImageTargetTracker(str(path)).start()


def test_camera_failure_raises_permission_error(target_path):
    tracker = ImageTargetTracker(target_path, capture=FailingCapture())

    with pytest.raises(CameraPermissionError) as exc_info:
        tracker.start()
    assert exc_info.value.user_message == "Camera access denied"


def test_only_anchor_zero(target_path):
    tracker = ImageTargetTracker(target_path)

    assert tracker.add_anchor(0) is tracker.add_anchor(0)
    with pytest.raises(ValueError):
        tracker.add_anchor(1)


def test_malformed_target_url_raises_retrieval_error():
    tracker = ImageTargetTracker("https://cdn.example.com/target\x01.png")

    with pytest.raises(RetrievalError):
        tracker.start()
