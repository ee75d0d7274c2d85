"""Pydantic schema for plugin configuration validation."""

from __future__ import annotations

import ipaddress
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ovpn_radius.utils.logger import parse_size


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ServerSettings(_Section):
    """NAS identity reported to the RADIUS server."""

    identifier: str = Field(..., min_length=1, description="NAS-Identifier")
    ip_address: str = Field(..., description="NAS-IP-Address / Calling-Station-Id")
    port_type: str = Field(default="Virtual", min_length=1)
    service_type: str = Field(default="Framed-User", min_length=1)

    @field_validator("ip_address")
    @classmethod
    def _validate_ip(cls, v: str) -> str:
        try:
            ipaddress.ip_address(v.strip())
        except ValueError as exc:
            raise ValueError("ip_address must be a valid IPv4 or IPv6 address") from exc
        return v.strip()


class LoggingSettings(_Section):
    log_file: str = Field(..., min_length=1)
    log_level: str = Field(default="INFO")
    log_rotation: bool = Field(default=False)
    max_log_size: str = Field(default="10MB")
    backup_count: int = Field(default=5, ge=0)

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("max_log_size")
    @classmethod
    def _validate_size(cls, v: str) -> str:
        try:
            size = parse_size(v)
        except ValueError as exc:
            raise ValueError(f"invalid size: {v!r} (expected e.g. 512KB, 10MB)") from exc
        if size <= 0:
            raise ValueError("max_log_size must be positive")
        return v.strip()


class RadiusSettings(_Section):
    """RADIUS servers reached through radclient."""

    authentication_only: bool = Field(default=False)
    auth_server: str = Field(..., min_length=1)
    auth_secret: str = Field(..., min_length=1)
    acct_server: str = Field(..., min_length=1)
    acct_secret: str = Field(..., min_length=1)
    radclient_path: str = Field(default="/usr/bin/radclient", min_length=1)
    radclient_timeout: float = Field(default=0, ge=0, le=300)

    @property
    def transport_timeout(self) -> float | None:
        return self.radclient_timeout or None


class DatabaseSettings(_Section):
    db_path: str = Field(..., min_length=1)
    lock_file: str | None = None
    lock_timeout: float = Field(default=10.0, gt=0, le=300)
    pool_size: int = Field(default=5, ge=1, le=50)
    max_overflow: int = Field(default=5, ge=0, le=50)
    busy_timeout_ms: int = Field(default=10000, ge=0)

    @property
    def lock_path(self) -> Path:
        return Path(self.lock_file or f"{self.db_path}.lock")


class PluginConfig(_Section):
    """Immutable, validated configuration for one plugin invocation."""

    server: ServerSettings
    logging: LoggingSettings
    radius: RadiusSettings
    database: DatabaseSettings
    source: str | None = None
