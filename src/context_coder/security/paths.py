"""Path validation and resolution helpers for root-scoped access."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_DRIVE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:")


class PathBlockedError(Exception):
    """Raised when a requested path violates sandbox policy."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def _relative_parts(candidate: str) -> list[str]:
    """Split a caller path into segments, treating it as rooted."""
    normalized = candidate.replace("\\", "/")
    normalized = WINDOWS_DRIVE_PATTERN.sub("", normalized, count=1)
    return [part for part in normalized.split("/") if part not in ("", ".")]


def validate_relative_path(candidate: str) -> None:
    """Raise PathBlockedError when the path contains a parent-directory segment."""
    if any(part == ".." for part in _relative_parts(candidate)):
        raise PathBlockedError(
            reason=f"Path cannot contain parent directory references (got: {candidate})",
            hint="Remove '..' segments and use a path relative to the root directory.",
        )


def resolve_relative_path(candidate: str, root_dir: Path) -> Path:
    """Join a relative path onto root_dir; absolute-style inputs never replace the root."""
    validate_relative_path(candidate)
    root = root_dir.resolve()
    parts = _relative_parts(candidate)
    if not parts:
        return root

    resolved = (root / Path(*parts)).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            reason=f"Resolved path escapes the root directory (got: {candidate})",
            hint="Use a path located under the configured root directory.",
        )
    return resolved


def display_path(candidate: str) -> str:
    """Return the user-facing form of a relative path."""
    parts = _relative_parts(candidate)
    if not parts:
        return "."
    return "/".join(parts)


def relative_display(path: Path, root_dir: Path) -> str:
    """Render an absolute path under root_dir as a POSIX relative path."""
    relative = path.relative_to(root_dir).as_posix()
    return relative or "."
