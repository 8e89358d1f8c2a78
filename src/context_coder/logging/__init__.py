"""Structured logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from .diagnostics import configure_logging, get_logger

__all__ = [
    "AuditEvent",
    "JsonlAuditLogger",
    "configure_logging",
    "get_logger",
    "sanitize_arguments",
    "utc_timestamp",
]
