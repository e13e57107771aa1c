"""
Image Target Tracker.

Recognizes one printed image in the camera feed and follows its pose.

Pipeline per frame:
1. ORB features on the grayscale frame
2. Ratio-tested kNN matches against the target descriptors
3. RANSAC homography -> projected target corners
4. Kalman smoothing of the corners
5. solvePnP -> anchor pose (target width normalized to 1)

Guarantees:
- FOUND and LOST alternate, starting with FOUND
- LOST only after ``lost_after_frames`` consecutive misses
- The anchor group is visible only while the target is tracked
"""

from __future__ import annotations

from typing import Optional

import cv2
import httpx
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from framerz.assets.texture_loader import decode_image, read_image_bytes
from framerz.capture.video_capture import VideoCapture
from framerz.core.contracts import TrackingEvent
from framerz.core.errors import CameraPermissionError, RetrievalError
from framerz.scene.camera import Camera
from .anchor import Anchor
from .base import TrackerAdapter
from .kalman_tracker import KalmanCornerTracker


class ImageTargetTracker(TrackerAdapter):
    """
    Single image-target tracker built on OpenCV features.

    Only anchor index 0 exists; multiple simultaneous targets are not
    supported.
    """

    def __init__(
        self,
        image_target_src: str,
        capture: Optional[VideoCapture] = None,
        client: Optional[httpx.Client] = None,
        min_matches: int = 20,
        lost_after_frames: int = 5,
        max_features: int = 1000,
        ratio: float = 0.75,
        timeout: float = 10.0,
    ):
        """
        Initialize image target tracker.

        Args:
            image_target_src: URL or path of the target image
            capture: Camera to read frames from (None = frames are pushed)
            client: httpx client for a remote target
            min_matches: RANSAC inliers needed to count as detected
            lost_after_frames: Consecutive misses before LOST
            max_features: ORB features per image
            ratio: Lowe ratio for match filtering
            timeout: Request timeout for the target image
        """
        self.image_target_src = image_target_src
        self.capture = capture
        self.client = client
        self.min_matches = min_matches
        self.lost_after_frames = lost_after_frames
        self.ratio = ratio
        self.timeout = timeout

        self.camera: Optional[Camera] = None

        self._orb = cv2.ORB_create(nfeatures=max_features)
        self._matcher = cv2.BFMatcher(cv2.NORM_HAMMING)

        self._target_keypoints = None
        self._target_descriptors = None
        self._target_corners_px: Optional[NDArray[np.float32]] = None
        self._object_points: Optional[NDArray[np.float64]] = None

        self._anchor: Optional[Anchor] = None
        self._filter: Optional[KalmanCornerTracker] = None
        self._tracking = False
        self._misses = 0
        self._running = False

    # ------------------------------------------------------------------
    # TrackerAdapter
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Load the target and open the camera.

        Raises:
            RetrievalError: target image missing, undecodable or featureless
            CameraPermissionError: camera could not be opened
        """
        self._load_target()

        if self.capture is not None:
            if not self.capture.start():
                raise CameraPermissionError(f"Could not open camera {self.capture.device_index}")
            width, height = self.capture.frame_size
            self.camera = Camera(width, height)

        self._running = True
        logger.info("Image target tracker started")

    def stop(self) -> None:
        self._running = False
        if self.capture is not None:
            self.capture.stop()
        logger.info("Image target tracker stopped")

    def add_anchor(self, index: int) -> Anchor:
        if index != 0:
            raise ValueError(f"Only one image target is supported (got anchor index {index})")
        if self._anchor is None:
            self._anchor = Anchor(index)
            self._anchor.group.visible = False
        return self._anchor

    def read_frame(self) -> Optional[np.ndarray]:
        if self.capture is None:
            return None
        return self.capture.read_frame()

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    def process_frame(self, frame: np.ndarray) -> None:
        """Track one RGB frame and fire FOUND/LOST on state changes."""
        if self._target_descriptors is None or self._anchor is None:
            return

        if self.camera is None:
            self.camera = Camera(frame.shape[1], frame.shape[0])

        corners = self._detect(frame)
        if corners is not None:
            self._on_detected(corners)
        else:
            self._on_missed()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_target(self) -> None:
        try:
            data = read_image_bytes(self.image_target_src, self.client, self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            raise RetrievalError(f"Could not load image target {self.image_target_src}: {e}") from e

        try:
            image = decode_image(data)
        except ValueError as e:
            raise RetrievalError(f"Image target is not a decodable image: {self.image_target_src}") from e

        gray = cv2.cvtColor(image[..., :3], cv2.COLOR_RGB2GRAY)
        keypoints, descriptors = self._orb.detectAndCompute(gray, None)
        if descriptors is None or len(keypoints) < self.min_matches:
            raise RetrievalError(
                f"Image target has too few features ({0 if descriptors is None else len(keypoints)})"
            )

        h, w = gray.shape[:2]
        aspect = h / w
        self._target_keypoints = keypoints
        self._target_descriptors = descriptors
        self._target_corners_px = np.float32([[0, 0], [w, 0], [w, h], [0, h]])
        self._object_points = np.array([
            [-0.5, -aspect / 2, 0.0],
            [0.5, -aspect / 2, 0.0],
            [0.5, aspect / 2, 0.0],
            [-0.5, aspect / 2, 0.0],
        ])
        logger.info(f"Image target loaded: {w}x{h}, {len(keypoints)} features")

    def _detect(self, frame: np.ndarray) -> Optional[NDArray[np.float64]]:
        gray = cv2.cvtColor(frame[..., :3], cv2.COLOR_RGB2GRAY)
        keypoints, descriptors = self._orb.detectAndCompute(gray, None)
        if descriptors is None or len(keypoints) < 2:
            return None

        pairs = self._matcher.knnMatch(self._target_descriptors, descriptors, k=2)
        good = [
            pair[0] for pair in pairs
            if len(pair) == 2 and pair[0].distance < self.ratio * pair[1].distance
        ]
        if len(good) < self.min_matches:
            return None

        src = np.float32([self._target_keypoints[m.queryIdx].pt for m in good]).reshape(-1, 1, 2)
        dst = np.float32([keypoints[m.trainIdx].pt for m in good]).reshape(-1, 1, 2)
        homography, inliers = cv2.findHomography(src, dst, cv2.RANSAC, 5.0)
        if homography is None or inliers is None or int(inliers.sum()) < self.min_matches:
            return None

        corners = cv2.perspectiveTransform(
            self._target_corners_px.reshape(-1, 1, 2), homography
        ).reshape(4, 2)
        if not cv2.isContourConvex(corners.astype(np.float32)):
            return None
        return corners.astype(np.float64)

    def _on_detected(self, corners: NDArray[np.float64]) -> None:
        self._misses = 0
        if self._filter is None:
            self._filter = KalmanCornerTracker(corners)
            smoothed = corners
        else:
            self._filter.predict()
            smoothed = self._filter.update(corners)

        pose = self._solve_pose(smoothed)
        if pose is not None:
            self._anchor.group.matrix = pose

        if not self._tracking:
            self._tracking = True
            self._anchor.group.visible = True
            self._anchor.dispatch(TrackingEvent.FOUND)

    def _on_missed(self) -> None:
        if not self._tracking:
            return

        self._misses += 1
        if self._misses < self.lost_after_frames:
            return

        self._tracking = False
        self._filter = None
        self._anchor.group.visible = False
        self._anchor.dispatch(TrackingEvent.LOST)

    def _solve_pose(self, corners: NDArray[np.float64]) -> Optional[NDArray[np.float64]]:
        ok, rvec, tvec = cv2.solvePnP(
            self._object_points,
            corners.reshape(-1, 1, 2),
            self.camera.intrinsics,
            None,
            flags=cv2.SOLVEPNP_IPPE,
        )
        if not ok:
            return None

        rotation, _ = cv2.Rodrigues(rvec)
        pose = np.eye(4)
        pose[:3, :3] = rotation
        pose[:3, 3] = tvec.ravel()
        return pose
