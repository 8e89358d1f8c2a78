"""Built-in tool registrations for the codebase and filesystem tools."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from context_coder.config import ServerConfig
from context_coder.digest import (
    DEFAULT_IGNORE_FILE,
    PROJECT_IGNORE_FILE,
    CodebaseStats,
    TokenCounters,
    build_size_report,
    build_top_largest_files_report,
    generate_codebase_digest,
    get_file_stats,
    resolve_ignore_file,
)
from context_coder.logging import get_logger
from context_coder.security import resolve_relative_path
from context_coder.tools import filesystem
from context_coder.tools.process import execute_command
from context_coder.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry
from context_coder.tools.schemas import (
    DirectoryTreeArgs,
    ExecuteCommandArgs,
    GetCodebaseArgs,
    GetCodebaseSizeArgs,
    GetCodebaseTopLargestFilesArgs,
    MoveFileArgs,
    PathArgs,
    SearchFileContentArgs,
    SearchFilesArgs,
    WriteFileArgs,
)

log = get_logger("tools")

ADDITIONAL_IGNORES = (PROJECT_IGNORE_FILE,)
RELATIVE_PATH_HINT = (
    "Use relative paths with or without './' prefix (e.g., 'file.txt', './folder/file.txt'). "
)


def text_result(text: str, is_error: bool = False) -> dict[str, object]:
    """Wrap text as a single-block tool result."""
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def _execution_failure(action: str, error: Exception) -> ToolDispatchError:
    return ToolDispatchError(code="TOOL_EXECUTION_FAILED", message=f"{action}: {error}")


def register_builtin_tools(
    registry: ToolRegistry,
    config: ServerConfig,
    token_counters: TokenCounters,
) -> None:
    """Register the codebase tools, plus the filesystem tools in full mode."""
    root_dir = config.root_dir
    registry.register(
        "get_codebase_size",
        "Check the codebase size and token counts before processing. Returns token counts "
        "for Claude and ChatGPT, warns if the codebase is too large, and shows the largest "
        "files. IMPORTANT: You should ALWAYS run this tool at the start of EVERY NEW "
        "CONVERSATION before any other operations. After running this tool, you should then "
        "call get_codebase to retrieve the actual code.",
        GetCodebaseSizeArgs,
        _get_codebase_size_handler(config, token_counters),
    )
    registry.register(
        "get_codebase",
        "Generate a merged markdown file of the entire codebase. Results are paginated. If "
        "more content exists, a message will prompt to call again with the next page number. "
        "Leave the _pageSize variable empty unless the client limits tool output further, in "
        "that case set it to 30000.",
        GetCodebaseArgs,
        _get_codebase_handler(config),
    )
    registry.register(
        "get_codebase_top_largest_files",
        "Returns the top X largest files in the codebase. Use this tool when users want to "
        "see more large files beyond the initial 10 shown in get_codebase_size. Helpful for "
        f"identifying which files to add to {PROJECT_IGNORE_FILE} for large codebases.",
        GetCodebaseTopLargestFilesArgs,
        _top_largest_files_handler(root_dir, token_counters),
    )
    if config.mode == "mini":
        return

    registry.register(
        "read_file",
        "Read the complete contents of a file from the file system. "
        + RELATIVE_PATH_HINT
        + "IMPORTANT: You should NEVER call this unless the user specifically asks to re-read "
        "a file OR you get stuck and need it to debug something.",
        PathArgs,
        _file_operation_handler(
            "read_file",
            "Failed to read file",
            lambda args: filesystem.read_file(root_dir, args.path),
        ),
    )
    registry.register(
        "write_file",
        "Create a new file or completely overwrite an existing file with new content. "
        + RELATIVE_PATH_HINT
        + "You must write out the file in full each time you call write_file.",
        WriteFileArgs,
        _file_operation_handler(
            "write_file",
            "Failed to write file",
            lambda args: filesystem.write_file(root_dir, args.path, args.content),
        ),
    )
    registry.register(
        "remove_file",
        "Delete a file from the file system. "
        + RELATIVE_PATH_HINT
        + "This operation is irreversible. Only works with files, not directories.",
        PathArgs,
        _file_operation_handler(
            "remove_file",
            "Failed to remove file",
            lambda args: filesystem.remove_file(root_dir, args.path),
        ),
    )
    registry.register(
        "create_directory",
        "Create a new directory or ensure a directory exists. "
        + RELATIVE_PATH_HINT
        + "Can create multiple nested directories in one operation.",
        PathArgs,
        _file_operation_handler(
            "create_directory",
            "Failed to create directory",
            lambda args: filesystem.create_directory(root_dir, args.path),
        ),
    )
    registry.register(
        "list_directory",
        "Get a detailed listing of all files and directories in a specified path. Results "
        "show [FILE] and [DIR] prefixes to distinguish between files and directories.",
        PathArgs,
        _file_operation_handler(
            "list_directory",
            "Failed to list directory",
            lambda args: filesystem.list_directory(root_dir, args.path),
        ),
    )
    registry.register(
        "directory_tree",
        "Get a recursive tree view of files and directories as a JSON structure. Path is "
        "optional - if not provided, shows the root directory.",
        DirectoryTreeArgs,
        _file_operation_handler(
            "directory_tree",
            "Failed to build directory tree",
            lambda args: filesystem.directory_tree(root_dir, args.path),
        ),
    )
    registry.register(
        "move_file",
        "Move or rename files and directories. Can move files between directories and rename "
        "them in a single operation.",
        MoveFileArgs,
        _file_operation_handler(
            "move_file",
            "Failed to move file",
            lambda args: filesystem.move_file(root_dir, args.source, args.destination),
        ),
    )
    registry.register(
        "search_files",
        "Recursively search for files by file name matching a pattern. The search is "
        "case-insensitive and matches partial file names.",
        SearchFilesArgs,
        _file_operation_handler(
            "search_files",
            "Failed to search files",
            lambda args: filesystem.search_files(
                root_dir, args.path, args.pattern, args.exclude_patterns
            ),
        ),
    )
    registry.register(
        "search_file_content",
        "Search for text patterns inside files, with optional regular expressions, case "
        "sensitivity and surrounding context lines.",
        SearchFileContentArgs,
        _file_operation_handler(
            "search_file_content",
            "Failed to search file content",
            lambda args: _search_file_content(root_dir, args),
        ),
    )
    registry.register(
        "execute_command",
        "Execute a command with controlled environment. Pass the full command as a string "
        "(e.g., 'ls -la'). Commands run without a shell, in the root directory, with a "
        "60-second default timeout. Returns stdout, stderr, and exit code.",
        ExecuteCommandArgs,
        _execute_command_handler(root_dir),
    )


def _ignore_file_label(ignore_file: str | None) -> str:
    return ignore_file or f"{DEFAULT_IGNORE_FILE} (default)"


def _get_codebase_handler(config: ServerConfig) -> ToolHandler:
    def handler(args: GetCodebaseArgs) -> dict[str, object]:
        log.info("get_codebase started", page=args.page, path=args.path)
        absolute_path = resolve_relative_path(args.path, config.root_dir)
        ignore_file = resolve_ignore_file(absolute_path)
        log.info("get_codebase ignore file", ignore_file=_ignore_file_label(ignore_file))
        try:
            result = generate_codebase_digest(
                absolute_path,
                page=args.page,
                page_size=args.page_size or config.page_size,
                ignore_file=ignore_file,
                additional_ignores=ADDITIONAL_IGNORES,
            )
        except OSError as error:
            log.error("get_codebase failed", error=str(error))
            raise _execution_failure("Failed to generate codebase digest", error) from error
        log.info(
            "get_codebase finished",
            page=result.current_page,
            content_length=len(result.content),
            has_more_pages=result.has_more_pages,
        )
        return text_result(result.content)

    return handler


def _collect_stats(
    root_dir: Path, path: str, token_counters: TokenCounters, tool: str
) -> CodebaseStats:
    absolute_path = resolve_relative_path(path, root_dir)
    ignore_file = resolve_ignore_file(absolute_path)
    log.info(f"{tool} ignore file", ignore_file=_ignore_file_label(ignore_file))
    try:
        return get_file_stats(
            absolute_path,
            token_counters,
            ignore_file=ignore_file,
            additional_ignores=ADDITIONAL_IGNORES,
        )
    except OSError as error:
        log.error(f"{tool} failed", error=str(error))
        raise _execution_failure("Failed to get codebase statistics", error) from error


def _get_codebase_size_handler(config: ServerConfig, token_counters: TokenCounters) -> ToolHandler:
    def handler(args: GetCodebaseSizeArgs) -> dict[str, object]:
        stats = _collect_stats(config.root_dir, args.path, token_counters, "get_codebase_size")
        report = build_size_report(stats, config.token_limits)
        log.info(
            "get_codebase_size finished",
            total_files=report.total_files,
            claude_tokens=report.total_tokens["claude"],
            has_warning=report.has_warning,
        )
        return text_result(report.content)

    return handler


def _top_largest_files_handler(root_dir: Path, token_counters: TokenCounters) -> ToolHandler:
    def handler(args: GetCodebaseTopLargestFilesArgs) -> dict[str, object]:
        stats = _collect_stats(
            root_dir, args.path, token_counters, "get_codebase_top_largest_files"
        )
        shown = min(args.count, len(stats.files))
        log.info("get_codebase_top_largest_files finished", count=shown)
        return text_result(build_top_largest_files_report(stats, args.count))

    return handler


def _file_operation_handler(
    tool: str,
    failure_prefix: str,
    operation: Callable[[object], str],
) -> ToolHandler:
    def handler(args: object) -> dict[str, object]:
        try:
            text = operation(args)
        except (OSError, ValueError) as error:
            log.error(f"{tool} failed", error=str(error))
            raise _execution_failure(failure_prefix, error) from error
        log.debug(f"{tool} finished", length=len(text))
        return text_result(text)

    return handler


def _search_file_content(root_dir: Path, args: SearchFileContentArgs) -> str:
    matches = filesystem.find_content_matches(
        root_dir,
        args.path,
        args.pattern,
        use_regex=args.use_regex,
        case_sensitive=args.case_sensitive,
        context_lines=args.context_lines,
        max_results=args.max_results,
        exclude_patterns=args.exclude_patterns,
        include_all_files=args.include_all_files,
    )
    return filesystem.format_content_matches(args.pattern, matches, args.max_results)


def _execute_command_handler(root_dir: Path) -> ToolHandler:
    def handler(args: ExecuteCommandArgs) -> dict[str, object]:
        log.info("execute_command started", command_length=len(args.command))
        try:
            outcome = execute_command(root_dir, args.command, args.timeout, args.env)
        except ValueError as error:
            raise _execution_failure("Failed to execute command", error) from error
        log.info("execute_command finished", is_error=outcome.is_error)
        return text_result(outcome.text, is_error=outcome.is_error)

    return handler
