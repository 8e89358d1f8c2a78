"""Markdown size and token reports built from codebase statistics."""

from __future__ import annotations

from context_coder.digest.ignore import PROJECT_IGNORE_FILE
from context_coder.digest.models import CodebaseStats, FileStat, SizeReport, TokenLimits

SIZE_REPORT_TOP_FILES = 10


def _format_kb(size_in_bytes: int) -> str:
    return f"{size_in_bytes / 1024:.2f} KB"


def _ranked_lines(files: tuple[FileStat, ...]) -> list[str]:
    return [
        f"{index}. `{item.name}` - {_format_kb(item.size_in_bytes)}"
        for index, item in enumerate(files, start=1)
    ]


def _warning_block(family: str, total: int, limit: int) -> list[str]:
    return [
        "⚠️ **WARNING: Large Codebase Detected**",
        "",
        f"Tell the user that the codebase contains {total:,} {family} tokens, which exceeds "
        f"the current limit of {limit:,} tokens.",
        "",
        "Tell the user that the codebase is likely too large for your context window, and that "
        f"they should create a `{PROJECT_IGNORE_FILE}` file in the root of their project "
        "(similar to .gitignore) to exclude unnecessary files.",
        "",
        "**Ask the user if they want to proceed anyway?** If yes, run `get_codebase` - but make "
        "the user aware that the large size may cause issues.",
        "",
    ]


def build_size_report(
    stats: CodebaseStats,
    limits: TokenLimits,
    top_n: int = SIZE_REPORT_TOP_FILES,
) -> SizeReport:
    """Render the pre-flight size report a client reads before requesting the digest."""
    lines: list[str] = []
    exceeded = [
        (family, total, limit)
        for family, total, limit in (
            ("Claude", stats.total_claude_tokens, limits.claude),
            ("ChatGPT", stats.total_gpt_tokens, limits.gpt),
        )
        if total > limit
    ]
    for family, total, limit in exceeded:
        lines.extend(_warning_block(family, total, limit))
    has_warning = bool(exceeded)

    lines.extend(
        [
            "## Token Summary",
            "",
            f"- **Claude tokens**: {stats.total_claude_tokens:,}",
            f"- **ChatGPT tokens**: {stats.total_gpt_tokens:,}",
            f"- **Total files**: {len(stats.files)}",
            "",
        ]
    )

    if stats.files:
        lines.extend(["## Top largest files", ""])
        if has_warning:
            lines.extend(
                [
                    f"Tell the user to consider adding some of these to their "
                    f"`{PROJECT_IGNORE_FILE}` file if they are big and not relevant to the "
                    "project (test files, snapshots, external modules, test data, other "
                    "unused files, etc):",
                    "",
                ]
            )
        lines.extend(_ranked_lines(stats.files[:top_n]))
        remaining = len(stats.files) - top_n
        if remaining > 0:
            lines.extend(
                [
                    "",
                    f"... and {remaining} more files.",
                    "",
                    "💡 **Tip**: You can use the `get_codebase_top_largest_files` tool to see "
                    "more large files.",
                ]
            )
        lines.append("")

    lines.extend(["## Next Step", ""])
    if has_warning:
        lines.append(
            "If you want to proceed despite the large codebase size, run the `get_codebase` "
            "tool to retrieve the actual codebase content. Tell the user to consider using a "
            f"`{PROJECT_IGNORE_FILE}` file to reduce the size first."
        )
    else:
        lines.append(
            "You MUST now run the `get_codebase` tool to retrieve the actual codebase "
            "content - this is required for this MCP to function correctly."
        )

    return SizeReport(
        content="\n".join(lines),
        has_warning=has_warning,
        total_tokens={
            "claude": stats.total_claude_tokens,
            "gpt": stats.total_gpt_tokens,
        },
        total_files=len(stats.files),
    )


def build_top_largest_files_report(stats: CodebaseStats, count: int) -> str:
    """Render the ranked largest-files listing followed by token totals."""
    lines = ["## Top Largest Files", ""]
    shown = max(0, min(count, len(stats.files)))
    if shown == 0:
        lines.append("No files found in the specified directory.")
    else:
        lines.append(
            f"Found {len(stats.files)} total files. Showing the top {shown} largest:"
        )
        lines.append("")
        lines.extend(_ranked_lines(stats.files[:shown]))
        if len(stats.files) > shown:
            lines.extend(["", f"... and {len(stats.files) - shown} more files."])
    lines.extend(
        [
            "",
            "## Total Summary",
            "",
            f"- **Total Claude tokens**: {stats.total_claude_tokens:,}",
            f"- **Total GPT tokens**: {stats.total_gpt_tokens:,}",
            f"- **Total files**: {len(stats.files)}",
        ]
    )
    return "\n".join(lines) + "\n"
