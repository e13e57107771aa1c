"""Tests for configuration loading."""

import yaml

from framerz import config as config_module
from framerz.config import (
    DEFAULT_API_URL,
    AppConfig,
    apply_env_overrides,
    config_from_dict,
    load_config,
)


def test_defaults():
    config = AppConfig()

    assert config.api_url == DEFAULT_API_URL
    assert config.require_gesture is None
    assert config.overlay_label == "TAP TO PLAY"
    assert config.default_title == "AR Experience"


def test_sections_map_to_fields():
    config = config_from_dict({
        "api": {"url": "https://x.test/api", "timeout_seconds": 3},
        "camera": {"device_index": 2, "width": 640},
        "platform": {"require_gesture": True},
        "tracking": {"lost_after_frames": 9},
        "ui": {"backend": "headless"},
    })

    assert config.api_url == "https://x.test/api"
    assert config.api_timeout == 3
    assert config.camera_device == 2
    assert config.camera_width == 640
    assert config.camera_height == 720
    assert config.require_gesture is True
    assert config.lost_after_frames == 9
    assert config.ui == "headless"


def test_unknown_entries_ignored():
    config = config_from_dict({
        "bogus": {"a": 1},
        "camera": {"zoom": 3},
        "video": "not a mapping",
    })
    assert config == AppConfig()


def test_env_overrides():
    config = apply_env_overrides(
        AppConfig(),
        {"FRAMERZ_API_URL": "https://env.test/api", "FRAMERZ_USER_AGENT": "iPhone"},
    )

    assert config.api_url == "https://env.test/api"
    assert config.user_agent == "iPhone"


def test_empty_env_values_ignored():
    config = apply_env_overrides(AppConfig(), {"FRAMERZ_API_URL": ""})
    assert config.api_url == DEFAULT_API_URL


def test_load_config_from_file(tmp_path, monkeypatch):
    monkeypatch.delenv("FRAMERZ_API_URL", raising=False)
    monkeypatch.delenv("FRAMERZ_USER_AGENT", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"overlay": {"label": "PLAY"}, "video": {"loop": False}}))

    config = load_config(str(path))

    assert config.overlay_label == "PLAY"
    assert config.video_loop is False


def test_load_config_env_beats_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FRAMERZ_API_URL", "https://env.test/api")
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"api": {"url": "https://file.test/api"}}))

    assert load_config(str(path)).api_url == "https://env.test/api"


def test_missing_file_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FRAMERZ_API_URL", raising=False)
    monkeypatch.delenv("FRAMERZ_USER_AGENT", raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_SETTINGS_PATH", tmp_path / "absent.yaml")

    assert load_config(str(tmp_path / "missing.yaml")) == AppConfig()


def test_shipped_settings_match_defaults(monkeypatch):
    monkeypatch.delenv("FRAMERZ_API_URL", raising=False)
    monkeypatch.delenv("FRAMERZ_USER_AGENT", raising=False)

    assert load_config() == AppConfig()
