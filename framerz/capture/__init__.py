"""
Video Capture Module.

Responsibilities:
- Camera acquisition for tracking
- Frame timing
"""

from .video_capture import VideoCapture
