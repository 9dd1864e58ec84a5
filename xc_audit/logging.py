"""Logging configuration utilities."""

from __future__ import annotations

import logging
from typing import Optional

import structlog

from .config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog and standard logging."""

    settings = settings or get_settings()
    level = settings.log_level.upper()
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.logging_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(level=level, format="%(message)s")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the standard library logger ``name``.

    Events always go through :mod:`logging`, so until :func:`configure_logging`
    runs the library stays as quiet as an unconfigured stdlib logger: nothing
    on stdout, warnings and above on stderr.
    """

    return structlog.wrap_logger(logging.getLogger(name))
