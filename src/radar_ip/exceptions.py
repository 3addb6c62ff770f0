"""
Error taxonomy for radar-ip.

Per-host errors (ConnectionFailed, AuthFailed, CommandFailed) are raised by
the probe client and recorded as data by the scanner; they never abort a
scan. InvalidRange aborts before any probe is issued. ScanTimeout is raised
only by callers that impose an outer deadline on the whole scan.

Reason strings come from the underlying library errors. Credential values
are never formatted into them.
"""

from typing import Any, Dict, Optional


class RadarError(Exception):
    """Base class for all radar-ip errors."""

    kind = "radar_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": str(self)}


class ConfigError(RadarError):
    """Configuration could not be resolved into a scan request."""

    kind = "config_error"


class InvalidRange(RadarError):
    """Range descriptor is malformed or holds no usable host."""

    kind = "invalid_range"

    def __init__(self, ip_range: str, reason: str = ""):
        self.ip_range = ip_range
        self.reason = reason
        message = f"Invalid IP range: '{ip_range}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "ip_range": self.ip_range, "reason": self.reason}


class HostError(RadarError):
    """A failure tied to a single probed host."""

    kind = "host_error"
    label = "Host error"

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"{self.label} on {address}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "address": self.address, "reason": self.reason}


class ConnectionFailed(HostError):
    """TCP connect or SSH handshake failed (refused, reset, timed out)."""

    kind = "connection_failed"
    label = "SSH connection error"


class AuthFailed(HostError):
    """The host rejected the credential, or the key could not be loaded."""

    kind = "auth_failed"

    PASSWORD = "password"
    KEY = "key"

    def __init__(self, address: str, reason: str, method: str = PASSWORD):
        self.method = method
        self.label = (
            "Password authentication error" if method == self.PASSWORD
            else "Private key authentication error"
        )
        super().__init__(address, reason)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["method"] = self.method
        return data


class CommandFailed(HostError):
    """Session channel could not be opened or the command did not finish."""

    kind = "command_failed"
    label = "SSH command execution error"


class ScanTimeout(RadarError):
    """An outer scan deadline expired before the scan concluded."""

    kind = "timeout"

    def __init__(self, seconds: float, ip_range: Optional[str] = None):
        self.seconds = seconds
        self.ip_range = ip_range
        super().__init__(f"Scan timed out after {seconds:g} seconds")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "seconds": self.seconds, "ip_range": self.ip_range}
