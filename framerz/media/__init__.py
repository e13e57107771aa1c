"""
Media Module.

Responsibilities:
- Video element (ready state, play/pause/mute, loop)
- Audio output while playing unmuted
- Playback state machine
"""

from .audio_track import AudioTrack
from .video_element import VideoElement
from .media_controller import MediaController
