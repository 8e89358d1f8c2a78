"""Sandboxing and path safety primitives."""

from .paths import (
    PathBlockedError,
    display_path,
    relative_display,
    resolve_relative_path,
    validate_relative_path,
)

__all__ = [
    "PathBlockedError",
    "display_path",
    "relative_display",
    "resolve_relative_path",
    "validate_relative_path",
]
