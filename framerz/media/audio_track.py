"""
Audio output for the overlay video.

OpenCV decodes video frames only, so the audio track is played by an
external ffplay process that runs only while the video is playing and
unmuted.
"""
from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Optional

from loguru import logger


COMMON_FFPLAY_PATHS = [
    r"C:\ffmpeg\bin\ffplay.exe",
    r"C:\Program Files\ffmpeg\bin\ffplay.exe",
    "/usr/bin/ffplay",
    "/usr/local/bin/ffplay",
    "/opt/homebrew/bin/ffplay",
]


def find_ffplay() -> Optional[str]:
    """Locate ffplay on PATH or in common install locations."""
    ffplay = shutil.which("ffplay")
    if ffplay:
        return ffplay
    for p in COMMON_FFPLAY_PATHS:
        if Path(p).exists():
            return p
    return None


class AudioTrack:
    """Plays a media source's audio through ffplay.

    Attributes:
        src: File path or URL of the media
        loop: Loop audio indefinitely
    """

    def __init__(self, src: str, loop: bool = True, ffplay: Optional[str] = None):
        self.src = src
        self.loop = loop
        self._ffplay = ffplay
        self._process: Optional[subprocess.Popen] = None
        self._warned = False

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self, position: float = 0.0) -> bool:
        """Start audio from ``position`` seconds.

        Returns:
            True if the ffplay process was started
        """
        if self.is_running:
            return True

        ffplay = self._ffplay or find_ffplay()
        if not ffplay:
            if not self._warned:
                logger.warning("ffplay not found, audio will not play")
                logger.warning("Install ffmpeg and add it to PATH for audio playback")
                self._warned = True
            return False

        cmd = [
            ffplay,
            "-nodisp",
            "-autoexit",
            "-loglevel", "quiet",
            "-ss", f"{max(position, 0.0):.3f}",
        ]
        if self.loop:
            cmd += ["-loop", "0"]
        cmd.append(self.src)

        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Could not start audio playback: {e}")
            self._process = None
            return False

        logger.debug(f"Audio started at {position:.2f}s")
        return True

    def stop(self) -> None:
        """Stop audio playback."""
        if self._process is None:
            return
        try:
            self._process.terminate()
            self._process.wait(timeout=1.0)
        except subprocess.TimeoutExpired:
            self._process.kill()
        self._process = None
        logger.debug("Audio stopped")
