"""JSONL audit trail of tool requests.

Only argument shapes are recorded for free text: file contents, commands
and search patterns are reduced to presence and length so the trail can be
shared without leaking what was read or written.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

# Arguments safe to copy as-is, keyed by the type they must have.
_VERBATIM_ARGUMENTS: dict[str, type] = {
    "path": str,
    "source": str,
    "destination": str,
    "page": int,
    "_pageSize": int,
    "count": int,
    "contextLines": int,
    "maxResults": int,
    "timeout": int,
    "useRegex": bool,
    "caseSensitive": bool,
    "includeAllFiles": bool,
}


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized representation of a single tool request."""

    timestamp: str
    request_id: str
    tool: str
    ok: bool
    blocked: bool
    error_code: str | None
    metadata: dict[str, object]

    @classmethod
    def from_envelope(
        cls,
        tool: str,
        arguments: Mapping[str, object],
        envelope: Mapping[str, object],
    ) -> AuditEvent:
        """Build an event from the response envelope sent for a request."""
        error = envelope.get("error")
        code = error.get("code") if isinstance(error, dict) else None
        return cls(
            timestamp=utc_timestamp(),
            request_id=str(envelope.get("request_id", "")),
            tool=tool,
            ok=envelope.get("ok") is True,
            blocked=envelope.get("blocked") is True,
            error_code=code if isinstance(code, str) else None,
            metadata=sanitize_arguments(arguments),
        )


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _describe(key: str, value: object) -> dict[str, object]:
    if isinstance(value, str):
        return {f"{key}_present": True, f"{key}_length": len(value)}
    if value is None or isinstance(value, (bool, int, float)):
        return {key: value}
    if isinstance(value, list):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    if isinstance(value, dict):
        return {f"{key}_type": "dict", f"{key}_keys": sorted(str(name) for name in value)}
    return {f"{key}_type": type(value).__name__}


def sanitize_arguments(arguments: Mapping[str, object]) -> dict[str, object]:
    """Keep paths and numeric knobs; reduce content, commands and patterns to their shape."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        value = arguments[key]
        expected = _VERBATIM_ARGUMENTS.get(key)
        # bool is an int subclass; a flag must not pass as a page number.
        if expected is not None and type(value) is expected:
            sanitized[key] = value
        else:
            sanitized.update(_describe(key, value))
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL audit logger with a bounded tail reader."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Write one event per line; the parent directory is created on first write."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(asdict(event), sort_keys=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def read(self, limit: int = 50) -> list[dict[str, object]]:
        """Return up to limit of the most recent events, skipping corrupt lines."""
        if limit < 1 or not self._path.exists():
            return []
        tail: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    tail.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return list(tail)
