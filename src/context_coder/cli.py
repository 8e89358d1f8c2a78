"""Local file listing with size and token totals."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from context_coder.digest import (
    DEFAULT_IGNORE_FILE,
    PROJECT_IGNORE_FILE,
    FileStat,
    TokenCounters,
    default_token_counters,
    get_file_stats,
    resolve_ignore_file,
)

SORT_KEYS = ("size", "path")
_RULE_WIDTH = 80


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="context-coder-list-files",
        description="List the files a digest would include, with sizes and token totals.",
    )
    parser.add_argument("directory", nargs="?", default=".")
    parser.add_argument("--sort-by", choices=SORT_KEYS, default="size")
    parser.add_argument(
        "--reverse",
        action="store_true",
        help="Ascending order instead of descending.",
    )
    return parser


def sort_files(files: list[FileStat], sort_by: str, reverse: bool) -> list[FileStat]:
    """Size sorts largest first and path sorts A-Z; reverse flips either."""
    if sort_by == "size":
        return sorted(files, key=lambda item: (item.size_in_bytes, item.name), reverse=not reverse)
    return sorted(files, key=lambda item: item.name, reverse=reverse)


def render_listing(
    directory: Path,
    sort_by: str = "size",
    reverse: bool = False,
    token_counters: TokenCounters | None = None,
) -> str:
    resolved = directory.resolve()
    ignore_file = resolve_ignore_file(resolved)
    stats = get_file_stats(
        resolved,
        token_counters or default_token_counters(),
        ignore_file=ignore_file,
        additional_ignores=(PROJECT_IGNORE_FILE,),
    )
    files = sort_files(list(stats.files), sort_by, reverse)
    order = "ascending" if reverse else "descending"
    lines = [f"📋 Listing files in: {resolved}"]
    if ignore_file:
        lines.append(f"🚫 Using ignore file: {ignore_file}")
    else:
        lines.append(f"🚫 Using default ignore patterns ({DEFAULT_IGNORE_FILE})")
    lines.extend(
        [
            "",
            "📊 Summary:",
            f"- Total files: {len(files)}",
            f"- Claude tokens: {stats.total_claude_tokens:,}",
            f"- ChatGPT tokens: {stats.total_gpt_tokens:,}",
            "",
            f"📁 Files (sorted by {sort_by} {order}):",
            "=" * _RULE_WIDTH,
        ]
    )
    for index, item in enumerate(files, start=1):
        size_kb = f"{item.size_in_bytes / 1024:.2f}"
        lines.append(f"{index:>4}. {item.name:<50} {size_kb:>10} KB")
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        listing = render_listing(Path(args.directory), args.sort_by, args.reverse)
    except OSError as error:
        print(f"❌ Error listing files: {error}", file=sys.stderr)
        return 1
    sys.stdout.write(listing)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
