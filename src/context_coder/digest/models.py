"""Typed models for codebase digests and size statistics."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class FileRecord:
    """One enumerated file: display name, rendered digest section and on-disk size."""

    name: str
    content: str
    size_in_bytes: int

    @property
    def size_in_characters(self) -> int:
        """Character count of the rendered section; the unit of page arithmetic."""
        return len(self.content)


@dataclass(slots=True, frozen=True)
class DigestResult:
    """One page of the digest plus its continuation state."""

    content: str
    has_more_pages: bool
    current_page: int
    next_page: int | None = None


@dataclass(slots=True, frozen=True)
class FileStat:
    """Size-only view of an enumerated file."""

    name: str
    size_in_bytes: int
    size_in_characters: int = 0


@dataclass(slots=True, frozen=True)
class CodebaseStats:
    """Files sorted largest first plus aggregate token estimates."""

    files: tuple[FileStat, ...]
    total_claude_tokens: int
    total_gpt_tokens: int


@dataclass(slots=True, frozen=True)
class TokenLimits:
    """Token budgets per target model family."""

    claude: int = 150_000
    gpt: int = 128_000


@dataclass(slots=True, frozen=True)
class SizeReport:
    """Rendered size report and the figures it was built from."""

    content: str
    has_warning: bool
    total_tokens: dict[str, int]
    total_files: int
