"""
Error taxonomy.

Fatal (reach the top-level boundary):
- ConfigError: missing or malformed slug, raised before any network call
- RetrievalError: asset request failed or returned an unusable payload
- CameraPermissionError: camera or tracker refused to start

Absorbed locally:
- PlaybackBlocked: platform refused unmuted playback
- AssetDegradation: optional thumbnail could not be loaded
"""

from __future__ import annotations


class FramerzError(Exception):
    """Base class for all application errors."""

    #: Message shown to the user when the error reaches the boundary
    user_message: str = "Initialization failed"

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class ConfigError(FramerzError):
    user_message = "Please provide a valid 6-letter slug in the URL (?f=XXXXXX)"


class RetrievalError(FramerzError):
    user_message = "Failed to load assets. Please try again."


class CameraPermissionError(FramerzError, PermissionError):
    user_message = "Camera access denied"


class PlaybackBlocked(FramerzError):
    """Unmuted playback was refused because no user gesture happened yet."""


class AssetDegradation(FramerzError):
    """An optional asset failed to load and a fallback is used instead."""
