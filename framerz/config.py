"""
Configuration for the AR video overlay.

Values come from, in increasing precedence:
1. AppConfig defaults
2. YAML settings file (--config or config/settings.yaml)
3. Environment variables (FRAMERZ_API_URL, FRAMERZ_USER_AGENT), usually from .env
4. Command-line flags (applied by main.py)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger


DEFAULT_API_URL = "https://framerz-dashboard.vercel.app/api"
DEFAULT_TITLE = "AR Experience"
DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


@dataclass
class AppConfig:
    """Main configuration for an AR session.

    Attributes:
        api_url: Asset endpoint queried with ?slug=<slug>
        api_timeout: Asset request timeout in seconds
        camera_device: Camera index, or path of a recorded clip to replay
        camera_width: Requested capture width
        camera_height: Requested capture height
        camera_fps: Requested capture rate
        user_agent: Environment signature override for gesture detection
        require_gesture: Force the gesture policy (None = detect)
        overlay_label: Text drawn under the play glyph
        overlay_texture_size: Overlay texture edge length in pixels
        video_loop: Restart the video when it ends
        play_audio: Play the audio track through ffplay while unmuted
        min_matches: Homography inliers needed to count the target as found
        lost_after_frames: Consecutive misses before the target is lost
        max_features: ORB features extracted per frame
        ui: UI backend ("opencv" or "headless")
        window_name: Window name for the OpenCV backend
        default_title: Title used when the asset has no customer name
    """
    api_url: str = DEFAULT_API_URL
    api_timeout: float = 10.0

    camera_device: Union[int, str] = 0
    camera_width: int = 1280
    camera_height: int = 720
    camera_fps: int = 30

    user_agent: Optional[str] = None
    require_gesture: Optional[bool] = None

    overlay_label: str = "TAP TO PLAY"
    overlay_texture_size: int = 512

    video_loop: bool = True
    play_audio: bool = True

    min_matches: int = 20
    lost_after_frames: int = 5
    max_features: int = 1000

    ui: str = "opencv"
    window_name: str = "Framerz AR"
    default_title: str = DEFAULT_TITLE


# YAML section -> {yaml key: AppConfig field}
_SECTIONS: Dict[str, Dict[str, str]] = {
    "api": {"url": "api_url", "timeout_seconds": "api_timeout"},
    "camera": {
        "device_index": "camera_device",
        "width": "camera_width",
        "height": "camera_height",
        "fps": "camera_fps",
    },
    "platform": {"user_agent": "user_agent", "require_gesture": "require_gesture"},
    "overlay": {"label": "overlay_label", "texture_size": "overlay_texture_size"},
    "video": {"loop": "video_loop", "play_audio": "play_audio"},
    "tracking": {
        "min_matches": "min_matches",
        "lost_after_frames": "lost_after_frames",
        "max_features": "max_features",
    },
    "ui": {"backend": "ui", "window_name": "window_name", "default_title": "default_title"},
}

_ENV_OVERRIDES = {
    "FRAMERZ_API_URL": "api_url",
    "FRAMERZ_USER_AGENT": "user_agent",
}


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Build an AppConfig from a parsed settings mapping.

    Unknown sections and keys are ignored with a warning.
    """
    config = AppConfig()
    known = {f.name for f in fields(AppConfig)}

    for section, values in (data or {}).items():
        mapping = _SECTIONS.get(section)
        if mapping is None or not isinstance(values, dict):
            logger.warning(f"Ignoring unknown config section: {section}")
            continue
        for key, value in values.items():
            attr = mapping.get(key)
            if attr is None or attr not in known:
                logger.warning(f"Ignoring unknown config key: {section}.{key}")
                continue
            setattr(config, attr, value)

    return config


def apply_env_overrides(config: AppConfig, environ: Optional[Dict[str, str]] = None) -> AppConfig:
    """Apply FRAMERZ_* environment variables on top of file settings."""
    environ = os.environ if environ is None else environ
    for var, attr in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            setattr(config, attr, value)
    return config


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from file, falling back to the default location.

    Args:
        config_path: Path to a YAML settings file

    Returns:
        AppConfig with environment overrides applied
    """
    data: Dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded config from {config_path}")
    elif DEFAULT_SETTINGS_PATH.exists():
        with open(DEFAULT_SETTINGS_PATH) as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded config from {DEFAULT_SETTINGS_PATH}")
    elif config_path:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    return apply_env_overrides(config_from_dict(data))
