"""Diagnostic logging routed to stderr; stdout carries the protocol."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog once to emit JSON lines on stderr."""
    global _configured
    if _configured:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> Any:
    """Return a lazy logger tagged with a component name.

    Loggers are created at import time but only bind to the configuration
    on first use, so ``configure_logging`` may run afterwards.
    """
    return structlog.get_logger(name, component=name)
