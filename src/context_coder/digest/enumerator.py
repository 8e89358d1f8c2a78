"""Deterministic file enumeration and digest-section rendering."""

from __future__ import annotations

import codecs
import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from context_coder.digest.ignore import IgnoreRules, load_ignore_rules
from context_coder.digest.models import CodebaseStats, FileRecord, FileStat
from context_coder.digest.tokens import TokenCounters
from context_coder.logging import get_logger

log = get_logger("digest")

_BINARY_SNIFF_BYTES = 4096
DEFAULT_MAX_WORKERS = 8

LANGUAGE_BY_EXTENSION = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".svelte": "svelte",
    ".vue": "vue",
    ".json": "json",
    ".md": "markdown",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".sh": "bash",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".sql": "sql",
    ".xml": "xml",
}

BINARY_KIND_BY_EXTENSION = {
    **dict.fromkeys((".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff"), "Image"),
    **dict.fromkeys((".mp3", ".wav", ".flac", ".ogg"), "Audio"),
    **dict.fromkeys((".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv"), "Video"),
    **dict.fromkeys((".zip", ".rar", ".7z", ".gz", ".tar", ".bz2", ".xz"), "Archive"),
    **dict.fromkeys((".woff", ".woff2", ".ttf", ".eot", ".otf"), "Font"),
    **dict.fromkeys((".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx"), "Document"),
    **dict.fromkeys((".exe", ".dll", ".so", ".dylib", ".bin"), "Executable"),
    **dict.fromkeys((".db", ".sqlite", ".sqlite3", ".dat"), "Data"),
}


def collect_files(root: Path, rules: IgnoreRules) -> list[tuple[str, Path]]:
    """Walk root, pruning ignored directories, and return (relative, path) sorted by name."""
    if not root.is_dir():
        raise NotADirectoryError(f"Not a readable directory: {root}")
    found: list[tuple[str, Path]] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError as error:
            if current == root:
                raise
            log.warning("directory skipped", path=str(current), error=str(error))
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if not rules.is_ignored(relative, is_dir=True):
                    stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if rules.is_ignored(relative):
                continue
            found.append((relative, full_path))
    found.sort(key=lambda item: item[0])
    return found


def binary_kind(path: Path, sample: bytes) -> str | None:
    """Return a binary kind label, or None for UTF-8 text."""
    kind = BINARY_KIND_BY_EXTENSION.get(path.suffix.lower())
    if kind is not None:
        return kind
    if b"\x00" in sample:
        return "Binary"
    try:
        codecs.getincrementaldecoder("utf-8")().decode(sample, final=False)
    except UnicodeDecodeError:
        return "Binary"
    return None


def render_section(name: str, text: str) -> str:
    """Render one file as a Markdown digest section."""
    language = LANGUAGE_BY_EXTENSION.get(Path(name).suffix.lower(), "")
    body = text if text.endswith("\n") else f"{text}\n"
    return f"# {name}\n\n```{language}\n{body}```\n\n"


def render_binary_section(name: str, kind: str) -> str:
    return f"# {name}\n\nThis is a binary file of the type: {kind}\n\n"


def load_record(relative: str, path: Path) -> FileRecord | None:
    """Read one file and build its digest record; None when it cannot be read."""
    try:
        raw = path.read_bytes()
    except OSError as error:
        log.warning("file skipped", path=relative, error=str(error))
        return None
    kind = binary_kind(path, raw[:_BINARY_SNIFF_BYTES])
    if kind is not None:
        content = render_binary_section(relative, kind)
    else:
        content = render_section(relative, raw.decode("utf-8", errors="replace"))
    return FileRecord(name=relative, content=content, size_in_bytes=len(raw))


def generate_digest_files(
    root: Path,
    ignore_file: str | None = None,
    additional_ignores: Iterable[str] = (),
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[FileRecord]:
    """Enumerate root into digest records; reads run concurrently, order stays sorted."""
    resolved = root.resolve()
    rules = load_ignore_rules(resolved, ignore_file, additional_ignores)
    files = collect_files(resolved, rules)
    if not files:
        return []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        loaded = list(pool.map(lambda item: load_record(*item), files))
    return [record for record in loaded if record is not None]


def get_file_stats(
    root: Path,
    counters: TokenCounters,
    ignore_file: str | None = None,
    additional_ignores: Iterable[str] = (),
) -> CodebaseStats:
    """Return per-file sizes and token totals for both model families.

    Files rank by rendered section length, the figure the paginator omits on,
    so the largest file reported is the first to be omitted from a page. On-disk
    bytes break ties and stay the figure shown to users.
    """
    records = generate_digest_files(root, ignore_file, additional_ignores)
    files = sorted(
        (
            FileStat(
                name=record.name,
                size_in_bytes=record.size_in_bytes,
                size_in_characters=record.size_in_characters,
            )
            for record in records
        ),
        key=lambda item: (-item.size_in_characters, -item.size_in_bytes, item.name),
    )
    return CodebaseStats(
        files=tuple(files),
        total_claude_tokens=sum(counters.claude.count(record.content) for record in records),
        total_gpt_tokens=sum(counters.gpt.count(record.content) for record in records),
    )
