"""
Configuration management for radar-ip.

RadarSettings loads secrets and defaults from the environment (and an
optional .env file). ScanRequest validates one fully resolved scan and
hands the probe layer an immutable ProbeConfig; nothing below this module
reads the environment.
"""

import re
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError
from .models import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    Password,
    PrivateKeyFile,
    PrivateKeyMaterial,
    ProbeConfig,
)
from .profiles import DeviceProfile, get_profile
from .scanner import MAX_CONCURRENT

MAC_RE = re.compile(r"^[0-9a-f]{2}(:[0-9a-f]{2}){5}$")

DEFAULT_SCAN_DEADLINE = 15.0


class RadarSettings(BaseSettings):
    """Ambient settings loaded from the environment and .env."""

    ssh_password: Optional[str] = Field(default=None, repr=False)
    hc_private_key: Optional[str] = Field(default=None, repr=False)
    ai3_private_key: Optional[str] = Field(default=None, repr=False)

    radar_log_level: str = Field(default="INFO", description="Log level for the CLI")
    radar_max_concurrent: int = Field(default=MAX_CONCURRENT, ge=1)
    radar_scan_deadline: float = Field(
        default=DEFAULT_SCAN_DEADLINE,
        gt=0,
        description="Outer deadline for a whole scan, seconds",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("radar_log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError("log level must be DEBUG, INFO, WARNING, or ERROR")
        return v

    def key_for(self, env_name: str) -> Optional[str]:
        """Return the key text held in the named variable, or None if unset/empty."""
        value = getattr(self, env_name.lower(), None)
        return value or None


def load_settings(**overrides) -> RadarSettings:
    """
    Load RadarSettings from the environment and .env.

    Raises:
        ConfigError: a variable such as RADAR_LOG_LEVEL or
            RADAR_MAX_CONCURRENT holds an invalid value
    """
    try:
        return RadarSettings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid environment settings: {_describe(e)}") from e


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
    )


class ScanRequest(BaseModel):
    """One fully resolved scan request."""

    target_mac: str
    ip_range: str
    username: str = "root"
    credential: Union[Password, PrivateKeyFile, PrivateKeyMaterial] = Field(repr=False)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-host timeout, seconds")
    max_concurrent: int = Field(default=MAX_CONCURRENT, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("target_mac")
    @classmethod
    def validate_target_mac(cls, v):
        v = v.strip().lower().replace("-", ":")
        if not MAC_RE.match(v):
            raise ValueError("target_mac must look like aa:bb:cc:dd:ee:ff")
        return v

    @field_validator("ip_range", "username")
    @classmethod
    def validate_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    def to_probe_config(self) -> ProbeConfig:
        return ProbeConfig(
            username=self.username,
            credential=self.credential,
            port=self.port,
            timeout=self.timeout,
        )


def resolve_credential(
    settings: RadarSettings,
    key_path: Optional[Path] = None,
    password: Optional[str] = None,
    profile: Optional[DeviceProfile] = None,
):
    """
    Pick the credential for a scan.

    Priority: explicit key file (password doubles as passphrase), explicit
    password, then the profile's key variable with SSH_PASSWORD as
    passphrase.

    Raises:
        ConfigError: no usable credential
    """
    if key_path is not None:
        return PrivateKeyFile(path=Path(key_path), passphrase=password or None)
    if password:
        return Password(secret=password)
    if profile is not None:
        env_name = get_profile(profile).key_env
        key_data = settings.key_for(env_name)
        if not key_data:
            raise ConfigError(
                f"Private key not found in environment variable '{env_name}'. "
                f"Make sure .env is present and contains {env_name}."
            )
        return PrivateKeyMaterial(key_data=key_data, passphrase=settings.ssh_password or None)
    if settings.ssh_password:
        return Password(secret=settings.ssh_password)
    raise ConfigError("No SSH credential: pass --key, --password, --profile or set SSH_PASSWORD")


def build_request(
    target_mac: str,
    settings: RadarSettings,
    profile: Optional[DeviceProfile] = None,
    ip_range: Optional[str] = None,
    username: Optional[str] = None,
    key_path: Optional[Path] = None,
    password: Optional[str] = None,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_TIMEOUT,
    max_concurrent: Optional[int] = None,
) -> ScanRequest:
    """
    Resolve profile defaults, explicit overrides and secrets into a ScanRequest.

    Raises:
        ConfigError: missing range or credential, or a field failed validation
    """
    template = get_profile(profile) if profile is not None else None

    ip_range = ip_range or (template.ip_range if template else None)
    if not ip_range:
        raise ConfigError("No IP range given and no profile to take it from")

    username = username or (template.username if template else "root")
    credential = resolve_credential(settings, key_path, password, profile)

    try:
        return ScanRequest(
            target_mac=target_mac,
            ip_range=ip_range,
            username=username,
            credential=credential,
            port=port,
            timeout=timeout,
            max_concurrent=(
                max_concurrent if max_concurrent is not None else settings.radar_max_concurrent
            ),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid scan request: {_describe(e)}") from e
