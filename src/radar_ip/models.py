"""
Data model shared by the probe client, the scanner and the front ends.

Credentials keep their secrets out of repr() so a config or outcome can be
logged safely.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

from .exceptions import HostError


# =============================================================================
# CREDENTIALS
# =============================================================================


@dataclass(frozen=True)
class Password:
    """Authenticate with username + password."""
    secret: str = field(repr=False)


@dataclass(frozen=True)
class PrivateKeyFile:
    """Authenticate with a private key read from disk."""
    path: Path
    passphrase: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class PrivateKeyMaterial:
    """Authenticate with in-memory key text (e.g. from an environment variable)."""
    key_data: str = field(repr=False)
    passphrase: Optional[str] = field(default=None, repr=False)


AuthCredential = Union[Password, PrivateKeyFile, PrivateKeyMaterial]


# =============================================================================
# PROBE CONFIGURATION
# =============================================================================


DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class ProbeConfig:
    """SSH settings shared read-only by every probe of one scan."""
    username: str
    credential: AuthCredential
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT  # per-host budget, seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding sensitive fields."""
        return {
            "username": self.username,
            "port": self.port,
            "timeout": self.timeout,
            "auth": type(self.credential).__name__,
            "has_password": isinstance(self.credential, Password),
            "has_private_key": isinstance(
                self.credential, (PrivateKeyFile, PrivateKeyMaterial)
            ),
        }


@dataclass(frozen=True)
class DeviceIdentity:
    """MAC addresses reported by one host."""
    address: str
    mac_addresses: FrozenSet[str] = frozenset()

    def has_mac(self, mac: str) -> bool:
        return mac.strip().lower() in self.mac_addresses


# =============================================================================
# OUTCOMES
# =============================================================================


class ProbeStatus(str, Enum):
    """Result of probing a single host."""
    MATCHED = "matched"
    NO_MATCH = "no_match"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeOutcome:
    address: str
    status: ProbeStatus
    error: Optional[HostError] = None

    @classmethod
    def matched(cls, address: str) -> "ProbeOutcome":
        return cls(address, ProbeStatus.MATCHED)

    @classmethod
    def no_match(cls, address: str) -> "ProbeOutcome":
        return cls(address, ProbeStatus.NO_MATCH)

    @classmethod
    def failed(cls, error: HostError) -> "ProbeOutcome":
        return cls(error.address, ProbeStatus.FAILED, error)


class ScanStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of a whole scan.

    FOUND carries the matching address. NOT_FOUND may carry the first
    per-host error seen, as a debugging hint.
    """
    status: ScanStatus
    target_mac: str
    address: Optional[str] = None
    error: Optional[HostError] = None
    hosts_scanned: int = 0

    @classmethod
    def found(cls, target_mac: str, address: str, hosts_scanned: int = 0) -> "ScanResult":
        return cls(ScanStatus.FOUND, target_mac, address=address, hosts_scanned=hosts_scanned)

    @classmethod
    def not_found(
        cls,
        target_mac: str,
        error: Optional[HostError] = None,
        hosts_scanned: int = 0,
    ) -> "ScanResult":
        return cls(ScanStatus.NOT_FOUND, target_mac, error=error, hosts_scanned=hosts_scanned)

    @property
    def is_found(self) -> bool:
        return self.status == ScanStatus.FOUND

    def describe(self) -> str:
        """Human readable one-liner for front ends."""
        if self.is_found:
            return f"MAC address '{self.target_mac}' found on {self.address}"
        message = f"MAC address '{self.target_mac}' not found on any host in the scanned range"
        if self.error is not None:
            message += f" (first host error: {self.error})"
        return message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "target_mac": self.target_mac,
            "address": self.address,
            "hosts_scanned": self.hosts_scanned,
            "error": self.error.to_dict() if self.error else None,
        }
