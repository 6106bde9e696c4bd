"""Structlog setup shared by the library and the CLI.

Library modules log through `get_logger`, which wraps a stdlib logger. Until
the host application configures stdlib logging, debug events are dropped and
nothing reaches stdout, where rendered access records usually go.
"""

from __future__ import annotations

import logging as std_logging
import sys

import structlog

PACKAGE_LOGGER = "accesslog_json"


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by the stdlib logger `name`."""

    return structlog.wrap_logger(
        std_logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def _level_from_verbosity(verbosity: int) -> int:
    if verbosity <= 0:
        return std_logging.WARNING
    if verbosity == 1:
        return std_logging.INFO
    return std_logging.DEBUG


def configure_logging(json_mode: bool = False, verbosity: int = 0) -> None:
    """Send package log events to stderr, as JSON lines or console text."""

    level = _level_from_verbosity(verbosity)
    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(std_logging.Formatter("%(message)s"))
    package_logger = std_logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False

    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
