"""Paginated codebase digest.

Every request re-enumerates the tree and recomputes all page boundaries;
the page number supplied by the caller is the only state carried between
calls. Records are packed greedily in enumeration order, and a record that
alone exceeds the page size is replaced by a short omission marker so it
can never overflow a page.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from context_coder.digest.enumerator import generate_digest_files
from context_coder.digest.models import DigestResult, FileRecord

DEFAULT_PAGE_SIZE = 99_000


def omission_marker(record: FileRecord) -> str:
    """Stand-in text for a record too large to fit on any page."""
    return (
        f"# {record.name}\n"
        f"File omitted due to large size ({record.size_in_characters:,} characters)\n"
    )


def effective_content(record: FileRecord, page_size: int) -> str:
    if record.size_in_characters > page_size:
        return omission_marker(record)
    return record.content


def build_pages(records: Iterable[FileRecord], page_size: int) -> list[str]:
    """Greedily pack records into pages of at most page_size characters."""
    pages: list[str] = []
    current: list[str] = []
    current_size = 0
    for record in records:
        content = effective_content(record, page_size)
        if current and current_size + len(content) > page_size:
            pages.append("".join(current))
            current = []
            current_size = 0
        current.append(content)
        current_size += len(content)
    if current:
        pages.append("".join(current))
    return pages


def continuation_directive(page: int, has_more_pages: bool) -> str:
    if has_more_pages:
        return (
            f"\n\n---\nThis is page {page}. You MUST call this tool again with "
            f"page: {page + 1} to get the rest of the files.\n"
        )
    return (
        f"\n\n---\nThis is the last page (page {page}). Do NOT call this tool again "
        "- you have received the complete codebase.\n"
    )


def paginate_records(
    records: Sequence[FileRecord],
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> DigestResult:
    """Select one page of the digest and append the continuation directive."""
    pages = build_pages(records, page_size)
    if not pages:
        return DigestResult(content="", has_more_pages=False, current_page=page)

    content = pages[page - 1] if 1 <= page <= len(pages) else ""
    if len(pages) == 1 and page == 1:
        return DigestResult(content=content, has_more_pages=False, current_page=page)

    has_more_pages = 1 <= page < len(pages)
    return DigestResult(
        content=content + continuation_directive(page, has_more_pages),
        has_more_pages=has_more_pages,
        current_page=page,
        next_page=page + 1 if has_more_pages else None,
    )


def generate_codebase_digest(
    input_dir: Path,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    ignore_file: str | None = None,
    additional_ignores: Iterable[str] = (),
) -> DigestResult:
    """Enumerate input_dir and return the requested digest page."""
    records = generate_digest_files(input_dir, ignore_file, additional_ignores)
    return paginate_records(records, page=page, page_size=page_size)
