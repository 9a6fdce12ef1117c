"""Structured logging configuration.

Log events go to stderr so the report on stdout stays machine-readable.

Usage:
    from tagtickets.logging_config import setup_logging

    setup_logging(log_level="DEBUG")
"""

import logging
import sys
from typing import Optional

import structlog


def setup_logging(log_level: Optional[str] = None, log_format: str = "console") -> None:
    """Configure structlog for the CLI.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to WARNING.
        log_format: "console" for colorized output, "json" for JSON lines
    """
    level = getattr(logging, (log_level or "WARNING").upper(), logging.WARNING)

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # GitPython logs through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
