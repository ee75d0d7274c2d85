"""Project-wide logging helpers built on structured logging utilities."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Any

from .logging_config import (
    StructuredJSONFormatter,
    bind_context,
    clear_context,
    get_structured_logger,
    logging_context,
)
from .logging_config import configure_logging as _configure_logging

if TYPE_CHECKING:
    from ovpn_radius.config.schema import LoggingSettings

__all__ = [
    "configure",
    "get_logger",
    "setup_logging",
    "parse_size",
    "bind_context",
    "clear_context",
    "logging_context",
    "StructuredJSONFormatter",
]

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


def configure(
    *, level: int = logging.INFO, handlers: list[logging.Handler] | None = None
) -> None:
    """Configure structured logging for the application."""
    _configure_logging(level=level, handlers=handlers)


def get_logger(name: str, **context: Any) -> logging.LoggerAdapter:
    """Return a structured logger adapter for the provided name."""
    return get_structured_logger(name, **context)


def parse_size(value: str) -> int:
    """Parse a human size such as ``10MB`` into bytes."""
    text = str(value).strip().upper()
    for unit, factor in _SIZE_UNITS.items():
        if text.endswith(unit):
            return int(float(text[: -len(unit)].strip()) * factor)
    if text.endswith("B"):
        text = text[:-1]
    return int(text)


def setup_logging(settings: LoggingSettings) -> None:
    """Route structured logs to the configured log file.

    OpenVPN discards script stdout, so the file is the primary sink; a
    console handler is only added for interactive runs.
    """
    log_dir = os.path.dirname(settings.log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = []

    if settings.log_rotation:
        handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=parse_size(settings.max_log_size),
                backupCount=settings.backup_count,
            )
        )
    else:
        handlers.append(logging.FileHandler(settings.log_file))

    if sys.stdout.isatty():
        handlers.append(logging.StreamHandler())

    configure(level=level, handlers=handlers)
