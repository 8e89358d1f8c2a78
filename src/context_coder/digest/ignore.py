"""Ignore-file resolution and gitignore-style path matching."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import pathspec

PROJECT_IGNORE_FILE = ".cocoignore"
DEFAULT_IGNORE_FILE = ".aidigestignore"

DEFAULT_IGNORE_PATTERNS = (
    "node_modules/",
    ".git/",
    ".svn/",
    ".hg/",
    "__pycache__/",
    "*.pyc",
    ".venv/",
    "venv/",
    ".env",
    ".env.*",
    "*.pem",
    "*.key",
    "id_rsa*",
    ".idea/",
    ".vscode/",
    ".cache/",
    ".turbo/",
    ".next/",
    ".nuxt/",
    ".svelte-kit/",
    ".pytest_cache/",
    ".mypy_cache/",
    ".ruff_cache/",
    ".tox/",
    "dist/",
    "build/",
    "coverage/",
    "*.log",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "poetry.lock",
    "Cargo.lock",
    ".DS_Store",
    "Thumbs.db",
    "codebase.md",
    ".context_coder/",
    DEFAULT_IGNORE_FILE,
)


def _is_pattern_line(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return False
    # A bare "!" or "/" carries no pattern.
    return bool(stripped.lstrip("!").strip("/"))


@dataclass(slots=True, frozen=True)
class IgnoreRules:
    """Compiled gitignore patterns; the last matching pattern wins."""

    spec: pathspec.GitIgnoreSpec

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> IgnoreRules:
        patterns = [line.rstrip("\r\n") for line in lines if _is_pattern_line(line)]
        return cls(spec=pathspec.GitIgnoreSpec.from_lines(patterns))

    def _matches(self, relative_path: str, is_dir: bool) -> bool:
        return self.spec.match_file(f"{relative_path}/" if is_dir else relative_path)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """Return True when the path or any of its parent directories is ignored."""
        parts = [part for part in relative_path.split("/") if part]
        for depth in range(1, len(parts)):
            if self._matches("/".join(parts[:depth]), is_dir=True):
                return True
        return self._matches("/".join(parts), is_dir=is_dir)


def resolve_ignore_file(root: Path) -> str | None:
    """Return the project ignore file name when it exists at root."""
    if (root / PROJECT_IGNORE_FILE).is_file():
        return PROJECT_IGNORE_FILE
    return None


def _read_ignore_lines(path: Path) -> list[str]:
    if not path.is_file():
        return []
    return path.read_text(encoding="utf-8", errors="replace").splitlines()


def load_ignore_rules(
    root: Path,
    ignore_file: str | None = None,
    additional_ignores: Iterable[str] = (),
) -> IgnoreRules:
    """Build rules from defaults, exactly one base ignore file, then additional patterns."""
    base_file = ignore_file if ignore_file is not None else DEFAULT_IGNORE_FILE
    lines: list[str] = list(DEFAULT_IGNORE_PATTERNS)
    lines.extend(_read_ignore_lines(root / base_file))
    lines.extend(additional_ignores)
    return IgnoreRules.from_lines(lines)
