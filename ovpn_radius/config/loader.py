"""Configuration loading.

Load order: defaults → config file → environment variables. Shared secrets
given in the environment take precedence over the file so they can be kept
out of the world-readable OpenVPN configuration tree.
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ovpn_radius.exceptions import ConfigurationError
from ovpn_radius.utils.logger import get_logger

from .constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULTS,
    ENV_OVERRIDES,
    ENV_OVPN_RADIUS_CONFIG,
)
from .schema import PluginConfig

logger = get_logger(__name__)


def resolve_config_path(
    explicit: str | None = None, environ: Mapping[str, str] | None = None
) -> str:
    """Pick the config file: CLI option, then environment, then default."""
    env = os.environ if environ is None else environ
    return explicit or env.get(ENV_OVPN_RADIUS_CONFIG) or DEFAULT_CONFIG_FILE


def _read_parser(path: str) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.read_dict(DEFAULTS)
    if not Path(path).is_file():
        raise ConfigurationError(
            f"Configuration file not found: {path}", field="config", value=path
        )
    try:
        with open(path, encoding="utf-8") as fh:
            parser.read_file(fh, source=path)
    except (OSError, configparser.Error) as exc:
        raise ConfigurationError(
            f"Unable to read configuration file {path}: {exc}",
            field="config",
            value=path,
        ) from exc
    return parser


def apply_env_overrides(
    parser: configparser.ConfigParser, environ: Mapping[str, str]
) -> list[str]:
    """Apply environment overrides in place; return the variables used."""
    applied: list[str] = []
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            if not parser.has_section(section):
                parser.add_section(section)
            parser.set(section, key, value)
            applied.append(env_name)
    return applied


def _as_nested_dict(parser: configparser.ConfigParser) -> dict[str, dict[str, Any]]:
    return {section: dict(parser.items(section)) for section in parser.sections()}


def _first_error_field(exc: ValidationError) -> str | None:
    errors = exc.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0].get("loc", ()))


def load_config(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> PluginConfig:
    """Load and validate the plugin configuration.

    Raises:
        ConfigurationError: the file is missing/unreadable or a value is invalid.
    """
    env = os.environ if environ is None else environ
    source = resolve_config_path(path, env)
    parser = _read_parser(source)
    overrides = apply_env_overrides(parser, env)

    try:
        config = PluginConfig.model_validate(
            {**_as_nested_dict(parser), "source": source}
        )
    except ValidationError as exc:
        field = _first_error_field(exc)
        raise ConfigurationError(
            f"Invalid configuration in {source}: {exc.errors()[0].get('msg', exc)}",
            field=field,
            source=source,
        ) from exc

    logger.debug(
        "Configuration loaded",
        event="ovpn.config.loaded",
        source=source,
        env_overrides=overrides,
    )
    return config
