"""
Device profile presets.

A profile maps a device family to its default SSH user, IP range and the
environment variable holding its deploy key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class DeviceProfile(str, Enum):
    HC = "HC"
    AI2 = "AI2"
    AI3 = "AI3"


@dataclass(frozen=True)
class ProfileTemplate:
    username: str
    ip_range: str
    key_env: str


PROFILES: Dict[DeviceProfile, ProfileTemplate] = {
    DeviceProfile.HC: ProfileTemplate(
        username="root",
        ip_range="10.8.0.0/24",
        key_env="HC_PRIVATE_KEY",
    ),
    # AI2 units are provisioned with the AI3 deploy key
    DeviceProfile.AI2: ProfileTemplate(
        username="nano",
        ip_range="10.8.0.0/24",
        key_env="AI3_PRIVATE_KEY",
    ),
    DeviceProfile.AI3: ProfileTemplate(
        username="pi",
        ip_range="192.168.255.0/24",
        key_env="AI3_PRIVATE_KEY",
    ),
}


def get_profile(profile) -> ProfileTemplate:
    """Look up a profile by enum member or name (case-insensitive)."""
    try:
        key = profile if isinstance(profile, DeviceProfile) else DeviceProfile(str(profile).upper())
    except ValueError:
        choices = ", ".join(p.value for p in DeviceProfile)
        raise ValueError(f"Unknown device profile '{profile}' (choose from {choices})")
    return PROFILES[key]
