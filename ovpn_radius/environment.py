"""Diagnostic dump of the environment OpenVPN hands to the plugin."""

from __future__ import annotations

import os
from collections.abc import Mapping

from ovpn_radius.utils.logger import get_logger

logger = get_logger(__name__, component="env")

_REDACT_MARKER = "password"


def visible_environment(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the environment minus anything mentioning a password."""
    env = os.environ if environ is None else environ
    return {
        name: value
        for name, value in sorted(env.items())
        if _REDACT_MARKER not in f"{name}={value}".lower()
    }


def log_environment(environ: Mapping[str, str] | None = None) -> int:
    """Log one entry per visible variable; return how many were logged."""
    visible = visible_environment(environ)
    for name, value in visible.items():
        logger.info(
            f"{name}={value}",
            event="ovpn.env.variable",
            variable=name,
        )
    logger.info("Environment dump finished", event="ovpn.env.done", count=len(visible))
    return len(visible)
