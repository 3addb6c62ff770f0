"""radar-ip - find which host on a network owns a MAC address, over SSH"""

__version__ = "0.2.0"

from .exceptions import (
    RadarError,
    ConfigError,
    InvalidRange,
    HostError,
    ConnectionFailed,
    AuthFailed,
    CommandFailed,
    ScanTimeout,
)
from .models import (
    Password,
    PrivateKeyFile,
    PrivateKeyMaterial,
    ProbeConfig,
    DeviceIdentity,
    ProbeOutcome,
    ProbeStatus,
    ScanResult,
    ScanStatus,
)
from .ranges import expand_range, iter_hosts
from .probe import ProbeClient, extract_macs
from .scanner import Scanner, MAX_CONCURRENT, scan_with_deadline, find_mac
from .config import RadarSettings, ScanRequest, build_request, load_settings
from .profiles import DeviceProfile, PROFILES
from .job import ScanJob, ScanState

__all__ = [
    # Version
    "__version__",

    # Errors
    "RadarError",
    "ConfigError",
    "InvalidRange",
    "HostError",
    "ConnectionFailed",
    "AuthFailed",
    "CommandFailed",
    "ScanTimeout",

    # Data model
    "Password",
    "PrivateKeyFile",
    "PrivateKeyMaterial",
    "ProbeConfig",
    "DeviceIdentity",
    "ProbeOutcome",
    "ProbeStatus",
    "ScanResult",
    "ScanStatus",

    # Engine
    "expand_range",
    "iter_hosts",
    "ProbeClient",
    "extract_macs",
    "Scanner",
    "MAX_CONCURRENT",
    "scan_with_deadline",
    "find_mac",

    # Configuration
    "RadarSettings",
    "ScanRequest",
    "build_request",
    "load_settings",
    "DeviceProfile",
    "PROFILES",

    # Front-end seam
    "ScanJob",
    "ScanState",
]
