"""Configuration package for the OpenVPN RADIUS plugin."""

from .loader import load_config, resolve_config_path
from .schema import (
    DatabaseSettings,
    LoggingSettings,
    PluginConfig,
    RadiusSettings,
    ServerSettings,
)

__all__ = [
    "load_config",
    "resolve_config_path",
    "PluginConfig",
    "ServerSettings",
    "LoggingSettings",
    "RadiusSettings",
    "DatabaseSettings",
]
