"""Structured logging setup for mdderive."""

import logging
import os
import sys
from typing import Any

import structlog


VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def configure_logging(level: str | None = None) -> None:
    """
    Configure structlog for key/value console logging on stderr.

    The level comes from the argument, then the MDDERIVE_LOG_LEVEL
    environment variable, and defaults to WARNING.

    Log levels:
    - DEBUG: plugin dispatch, parse/render timings, cache evictions
    - INFO: cache invalidations
    - WARNING: plugin failures
    - ERROR: parse and render failures

    Example:
        MDDERIVE_LOG_LEVEL=DEBUG mdderive fields docs/
    """
    log_level = (level or os.environ.get("MDDERIVE_LOG_LEVEL", "WARNING")).upper()
    if log_level not in VALID_LEVELS:
        log_level = "WARNING"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level)),
        context_class=dict,
        # Resolve sys.stderr per logger so redirected streams are honoured.
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("parse_started", record_id="a.md >>> Markdown")
    """
    return structlog.get_logger(name)
