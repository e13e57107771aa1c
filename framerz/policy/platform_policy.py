"""
Platform gesture policy.

Some platforms refuse unmuted playback until the user has interacted with
the page. Detection is a heuristic over an environment signature (a user
agent string), so it lives behind PlatformPolicy and can be replaced with a
FixedPolicy wherever the answer must not depend on the host.
"""

from __future__ import annotations

import platform
import re
from typing import Optional, Pattern

from loguru import logger

from framerz.core.contracts import GestureRequirement


GESTURE_PLATFORMS = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)


class PlatformPolicy:
    """Classifies an environment signature into a gesture requirement."""

    def __init__(self, pattern: Pattern[str] = GESTURE_PLATFORMS):
        self.pattern = pattern

    def classify(self, signature: str) -> GestureRequirement:
        if signature and self.pattern.search(signature):
            return GestureRequirement.REQUIRES_GESTURE
        return GestureRequirement.AUTOPLAY_ALLOWED


class FixedPolicy(PlatformPolicy):
    """Policy that ignores the signature and always answers the same."""

    def __init__(self, requirement: GestureRequirement):
        super().__init__()
        self.requirement = requirement

    def classify(self, signature: str) -> GestureRequirement:
        return self.requirement


def environment_signature(user_agent: Optional[str] = None) -> str:
    """Signature of the current host, or the configured user agent if set."""
    if user_agent:
        return user_agent
    return f"{platform.system()} {platform.machine()} {platform.platform()}"


def resolve_requirement(config, policy: Optional[PlatformPolicy] = None) -> GestureRequirement:
    """Evaluate the gesture requirement once at startup.

    An explicit ``require_gesture`` setting wins over detection.

    Args:
        config: AppConfig (uses ``require_gesture`` and ``user_agent``)
        policy: Policy to classify with (default: PlatformPolicy())

    Returns:
        The gesture requirement for this session
    """
    forced = getattr(config, "require_gesture", None)
    if forced is not None:
        policy = FixedPolicy(
            GestureRequirement.REQUIRES_GESTURE if forced
            else GestureRequirement.AUTOPLAY_ALLOWED
        )
    policy = policy or PlatformPolicy()

    signature = environment_signature(getattr(config, "user_agent", None))
    requirement = policy.classify(signature)
    logger.info(f"Platform policy: {requirement.value} (signature: {signature!r})")
    return requirement


class UserActivation:
    """Tracks whether a user gesture has happened during this session.

    The video element consults this before honouring an unmuted play
    request, which is how the platform restriction is enforced on a host
    that has no browser.
    """

    def __init__(self, requirement: GestureRequirement):
        self.requirement = requirement
        self._has_been_active = False

    def activate(self) -> None:
        """Record a user gesture (click or tap)."""
        self._has_been_active = True

    @property
    def has_been_active(self) -> bool:
        return self._has_been_active

    def allows_playback(self, muted: bool) -> bool:
        if muted:
            return True
        if self.requirement is GestureRequirement.AUTOPLAY_ALLOWED:
            return True
        return self._has_been_active
