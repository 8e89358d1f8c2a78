"""Root-scoped filesystem operations behind the file tools."""

from __future__ import annotations

import fnmatch
import json
import os
import re
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from context_coder.digest.enumerator import BINARY_KIND_BY_EXTENSION
from context_coder.digest.ignore import (
    DEFAULT_IGNORE_PATTERNS,
    PROJECT_IGNORE_FILE,
    IgnoreRules,
    load_ignore_rules,
    resolve_ignore_file,
)
from context_coder.security import display_path, relative_display, resolve_relative_path

SEARCH_SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "dist",
        "build",
        "target",
        "vendor",
        "__pycache__",
        ".venv",
        "venv",
        "ENV",
        "env",
        ".cache",
        ".turbo",
        ".next",
        ".nuxt",
        ".svelte-kit",
        "coverage",
    }
)


def read_file(root_dir: Path, path: str) -> str:
    resolved = resolve_relative_path(path, root_dir)
    return resolved.read_text(encoding="utf-8")


def write_file(root_dir: Path, path: str, content: str) -> str:
    """Write content atomically, creating parent directories as needed."""
    resolved = resolve_relative_path(path, root_dir)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{resolved.name}.", suffix=".tmp", dir=resolved.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(temp_name, resolved)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
    return f"Successfully wrote to {display_path(path)}"


def remove_file(root_dir: Path, path: str) -> str:
    resolved = resolve_relative_path(path, root_dir)
    if resolved.is_dir():
        raise IsADirectoryError(
            "Cannot remove directory with remove_file. Use rm with execute_command instead."
        )
    if not resolved.exists():
        raise FileNotFoundError(f"File not found: {display_path(path)}")
    resolved.unlink()
    return f"Successfully removed file {display_path(path)}"


def create_directory(root_dir: Path, path: str) -> str:
    resolved = resolve_relative_path(path, root_dir)
    existed = resolved.is_dir()
    resolved.mkdir(parents=True, exist_ok=True)
    if existed:
        return f"Directory {display_path(path)} already exists"
    return f"Successfully created directory {display_path(path)}"


def list_directory(root_dir: Path, path: str) -> str:
    resolved = resolve_relative_path(path, root_dir)
    with os.scandir(resolved) as entries:
        ordered = sorted(entries, key=lambda item: item.name)
    return "\n".join(
        f"{'[DIR]' if entry.is_dir() else '[FILE]'} {entry.name}" for entry in ordered
    )


def _tree(current: Path, root: Path, rules: IgnoreRules) -> list[dict[str, object]]:
    with os.scandir(current) as entries:
        ordered = sorted(entries, key=lambda item: item.name)
    result: list[dict[str, object]] = []
    for entry in ordered:
        full_path = Path(entry.path)
        is_dir = entry.is_dir(follow_symlinks=False)
        if rules.is_ignored(full_path.relative_to(root).as_posix(), is_dir=is_dir):
            continue
        node: dict[str, object] = {"name": entry.name, "type": "directory" if is_dir else "file"}
        if is_dir:
            node["children"] = _tree(full_path, root, rules)
        result.append(node)
    return result


def directory_tree(root_dir: Path, path: str = "") -> str:
    """Return the JSON tree under path, skipping default-ignored entries."""
    resolved = resolve_relative_path(path, root_dir)
    rules = IgnoreRules.from_lines(DEFAULT_IGNORE_PATTERNS)
    return json.dumps(_tree(resolved, root_dir.resolve(), rules), indent=2)


def move_file(root_dir: Path, source: str, destination: str) -> str:
    resolved_source = resolve_relative_path(source, root_dir)
    resolved_destination = resolve_relative_path(destination, root_dir)
    resolved_destination.parent.mkdir(parents=True, exist_ok=True)
    os.replace(resolved_source, resolved_destination)
    return f"Successfully moved {display_path(source)} to {display_path(destination)}"


def is_excluded(relative_path: str, exclude_patterns: list[str]) -> bool:
    """Glob patterns match the relative path; bare names match any path segment."""
    segments = relative_path.split("/")
    for pattern in exclude_patterns:
        if "*" in pattern:
            if fnmatch.fnmatch(relative_path, pattern):
                return True
        elif pattern in segments:
            return True
    return False


def _walk_sorted(base: Path) -> Iterator[os.DirEntry[str]]:
    """Yield the entries of one directory in name order; unreadable directories yield nothing."""
    try:
        with os.scandir(base) as entries:
            ordered = sorted(entries, key=lambda item: item.name)
    except OSError:
        return
    for entry in ordered:
        yield entry


def search_files(root_dir: Path, path: str, pattern: str, exclude_patterns: list[str]) -> str:
    """Case-insensitive substring search on entry names."""
    resolved = resolve_relative_path(path, root_dir)
    root = root_dir.resolve()
    needle = pattern.lower()
    matches: list[str] = []

    def search(current: Path) -> None:
        for entry in _walk_sorted(current):
            full_path = Path(entry.path)
            if is_excluded(full_path.relative_to(resolved).as_posix(), exclude_patterns):
                continue
            if needle in entry.name.lower():
                matches.append(relative_display(full_path, root))
            if entry.is_dir(follow_symlinks=False):
                search(full_path)

    search(resolved)
    return "\n".join(matches) if matches else "No matches found"


@dataclass(slots=True, frozen=True)
class ContentMatch:
    """One match of a content search with its surrounding lines."""

    file: str
    line_number: int
    matched_text: str
    context_start: int
    context: tuple[str, ...]


def _compile_search_pattern(pattern: str, use_regex: bool, case_sensitive: bool) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern if use_regex else re.escape(pattern), flags)
    except re.error as error:
        raise ValueError(f"Invalid regex pattern: {error}") from error


def find_content_matches(
    root_dir: Path,
    path: str,
    pattern: str,
    *,
    use_regex: bool = False,
    case_sensitive: bool = False,
    context_lines: int = 2,
    max_results: int = 100,
    exclude_patterns: list[str] | None = None,
    include_all_files: bool = False,
) -> list[ContentMatch]:
    """Search file contents under path, honouring ignore rules unless include_all_files."""
    resolved = resolve_relative_path(path, root_dir)
    root = root_dir.resolve()
    regex = _compile_search_pattern(pattern, use_regex, case_sensitive)
    excludes = exclude_patterns or []
    # Ignore rules are read at the searched path, like the digest tools.
    rules_root = resolved if resolved.is_dir() else resolved.parent
    rules: IgnoreRules | None = None
    if not include_all_files:
        rules = load_ignore_rules(
            rules_root, resolve_ignore_file(rules_root), additional_ignores=(PROJECT_IGNORE_FILE,)
        )

    def ignored(full_path: Path, is_dir: bool = False) -> bool:
        if rules is None:
            return False
        return rules.is_ignored(full_path.relative_to(rules_root).as_posix(), is_dir=is_dir)

    matches: list[ContentMatch] = []

    def search_in_file(file_path: Path) -> None:
        relative = relative_display(file_path, root)
        if file_path.suffix.lower() in BINARY_KIND_BY_EXTENSION:
            return
        if is_excluded(relative, excludes):
            return
        if ignored(file_path):
            return
        try:
            lines = file_path.read_text(encoding="utf-8").split("\n")
        except (OSError, UnicodeDecodeError):
            return
        for index, line in enumerate(lines):
            for found in regex.finditer(line):
                if len(matches) >= max_results:
                    return
                start = max(0, index - context_lines)
                matches.append(
                    ContentMatch(
                        file=relative,
                        line_number=index + 1,
                        matched_text=found.group(0),
                        context_start=start + 1,
                        context=tuple(lines[start : index + context_lines + 1]),
                    )
                )

    def search_directory(current: Path) -> None:
        for entry in _walk_sorted(current):
            if len(matches) >= max_results:
                return
            full_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if entry.name in SEARCH_SKIP_DIRS:
                    continue
                if ignored(full_path, is_dir=True):
                    continue
                search_directory(full_path)
            elif entry.is_file(follow_symlinks=False):
                search_in_file(full_path)

    if resolved.is_file():
        search_in_file(resolved)
    elif resolved.is_dir():
        search_directory(resolved)
    else:
        raise FileNotFoundError(f"Path not found: {display_path(path)}")
    return matches


def format_content_matches(pattern: str, matches: list[ContentMatch], max_results: int) -> str:
    """Render matches grouped by file as Markdown."""
    if not matches:
        return f'No matches found for pattern "{pattern}"'
    lines = [f'Found {len(matches)} match(es) for pattern "{pattern}":', ""]
    by_file: dict[str, list[ContentMatch]] = {}
    for match in matches:
        by_file.setdefault(match.file, []).append(match)
    for file_name, file_matches in by_file.items():
        suffix = "es" if len(file_matches) > 1 else ""
        lines.append(f"📄 **{file_name}** ({len(file_matches)} match{suffix})")
        for match in file_matches:
            lines.append("")
            lines.append(f"**Line {match.line_number}:** `{match.matched_text}`")
            lines.append("```")
            for offset, text in enumerate(match.context):
                number = match.context_start + offset
                prefix = "> " if number == match.line_number else "  "
                lines.append(f"{prefix}{number}: {text}")
            lines.append("```")
        lines.append("")
    if len(matches) >= max_results:
        lines.append(
            f"⚠️ Search limited to {max_results} results. Use more specific patterns or "
            "increase maxResults to see more matches."
        )
    return "\n".join(lines) + "\n"
