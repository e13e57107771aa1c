"""
Framerz AR Video Overlay

Plays a customer's video on top of a printed image target seen through
the camera. Playback follows target recognition: the video starts when the
target is found and pauses when it is lost. On platforms that forbid unmuted
autoplay, a tap-to-play overlay collects the one user gesture needed before
audio may start.

Top Priorities (strict order):
1. Audio never plays unless the video is visibly playing
2. Deterministic, event-ordered playback state
3. Graceful degradation for non-fatal asset failures
"""

__version__ = "0.1.0"
__author__ = "Framerz Team"
