"""
Image Target Tracking Module.

Responsibilities:
- Tracker boundary (start, anchors, found/lost callbacks)
- ORB/homography image-target recognition
- Kalman smoothing of the target corners
"""

from .anchor import Anchor
from .base import TrackerAdapter
from .kalman_tracker import KalmanCornerTracker
from .image_target_tracker import ImageTargetTracker
