"""Codebase enumeration, pagination and size reporting."""

from .enumerator import collect_files, generate_digest_files, get_file_stats
from .ignore import (
    DEFAULT_IGNORE_FILE,
    PROJECT_IGNORE_FILE,
    IgnoreRules,
    load_ignore_rules,
    resolve_ignore_file,
)
from .models import (
    CodebaseStats,
    DigestResult,
    FileRecord,
    FileStat,
    SizeReport,
    TokenLimits,
)
from .paginator import DEFAULT_PAGE_SIZE, generate_codebase_digest, paginate_records
from .report import build_size_report, build_top_largest_files_report
from .tokens import TokenCounter, TokenCounters, default_token_counters

__all__ = [
    "CodebaseStats",
    "DEFAULT_IGNORE_FILE",
    "DEFAULT_PAGE_SIZE",
    "DigestResult",
    "FileRecord",
    "FileStat",
    "IgnoreRules",
    "PROJECT_IGNORE_FILE",
    "SizeReport",
    "TokenCounter",
    "TokenCounters",
    "TokenLimits",
    "build_size_report",
    "build_top_largest_files_report",
    "collect_files",
    "default_token_counters",
    "generate_codebase_digest",
    "generate_digest_files",
    "get_file_stats",
    "load_ignore_rules",
    "paginate_records",
    "resolve_ignore_file",
]
