"""
Platform Policy Module.

Responsibilities:
- Gesture requirement classification
- Startup policy resolution from config
- User activation tracking
"""

from .platform_policy import (
    PlatformPolicy,
    FixedPolicy,
    UserActivation,
    environment_signature,
    resolve_requirement,
)
