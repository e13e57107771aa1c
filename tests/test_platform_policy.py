"""Tests for gesture policy classification and user activation."""

import pytest

from framerz.config import AppConfig
from framerz.core.contracts import GestureRequirement
from framerz.policy.platform_policy import (
    FixedPolicy,
    PlatformPolicy,
    UserActivation,
    environment_signature,
    resolve_requirement,
)


IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15"
IPAD_UA = "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X)"
ANDROID_UA = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0"


@pytest.mark.parametrize("signature,expected", [
    (IPHONE_UA, GestureRequirement.REQUIRES_GESTURE),
    (IPAD_UA, GestureRequirement.REQUIRES_GESTURE),
    ("some ipod touch", GestureRequirement.REQUIRES_GESTURE),
    (ANDROID_UA, GestureRequirement.AUTOPLAY_ALLOWED),
    (DESKTOP_UA, GestureRequirement.AUTOPLAY_ALLOWED),
    ("", GestureRequirement.AUTOPLAY_ALLOWED),
])
def test_classify(signature, expected):
    assert PlatformPolicy().classify(signature) is expected


def test_fixed_policy_ignores_signature():
    policy = FixedPolicy(GestureRequirement.REQUIRES_GESTURE)
    assert policy.classify(DESKTOP_UA) is GestureRequirement.REQUIRES_GESTURE


def test_environment_signature_prefers_user_agent():
    assert environment_signature(IPHONE_UA) == IPHONE_UA
    assert environment_signature()


def test_resolve_uses_configured_user_agent():
    config = AppConfig(user_agent=IPHONE_UA)
    assert resolve_requirement(config) is GestureRequirement.REQUIRES_GESTURE


def test_resolve_uses_given_policy():
    config = AppConfig(user_agent=DESKTOP_UA)
    policy = FixedPolicy(GestureRequirement.REQUIRES_GESTURE)
    assert resolve_requirement(config, policy) is GestureRequirement.REQUIRES_GESTURE


@pytest.mark.parametrize("forced,expected", [
    (True, GestureRequirement.REQUIRES_GESTURE),
    (False, GestureRequirement.AUTOPLAY_ALLOWED),
])
def test_forced_setting_wins(forced, expected):
    config = AppConfig(user_agent=IPHONE_UA, require_gesture=forced)
    assert resolve_requirement(config) is expected


def test_muted_playback_always_allowed():
    activation = UserActivation(GestureRequirement.REQUIRES_GESTURE)
    assert activation.allows_playback(muted=True)


def test_unmuted_playback_needs_activation_on_gesture_platforms():
    activation = UserActivation(GestureRequirement.REQUIRES_GESTURE)
    assert not activation.allows_playback(muted=False)

    activation.activate()
    assert activation.has_been_active
    assert activation.allows_playback(muted=False)


def test_autoplay_platform_allows_unmuted():
    activation = UserActivation(GestureRequirement.AUTOPLAY_ALLOWED)
    assert activation.allows_playback(muted=False)
    assert not activation.has_been_active
