"""Pydantic argument models for every tool."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolArguments(BaseModel):
    """Base model: camelCase wire names, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GetCodebaseArgs(ToolArguments):
    path: str = Field(
        default="", description="Relative path from root directory to analyze (defaults to root)"
    )
    page: int = Field(default=1, description="Page number for pagination (defaults to 1)")
    page_size: int | None = Field(
        default=None,
        alias="_pageSize",
        gt=0,
        description="Page size in characters (defaults to the configured page size)",
    )


class GetCodebaseSizeArgs(ToolArguments):
    path: str = Field(
        default="", description="Relative path from root directory to analyze (defaults to root)"
    )


class GetCodebaseTopLargestFilesArgs(ToolArguments):
    path: str = Field(
        default="", description="Relative path from root directory to analyze (defaults to root)"
    )
    count: int = Field(
        default=20, ge=0, description="Number of largest files to return (defaults to 20)"
    )


class PathArgs(ToolArguments):
    path: str = Field(
        description="Relative path from root directory (with or without './' prefix)"
    )


class WriteFileArgs(PathArgs):
    content: str


class DirectoryTreeArgs(ToolArguments):
    path: str = Field(
        default="", description="Relative path from root directory (defaults to root)"
    )


class MoveFileArgs(ToolArguments):
    source: str = Field(description="Relative path from root directory")
    destination: str = Field(description="Relative path from root directory")


class SearchFilesArgs(PathArgs):
    pattern: str
    exclude_patterns: list[str] = Field(default_factory=list)


class SearchFileContentArgs(PathArgs):
    pattern: str = Field(description="Text pattern to search for in file contents")
    use_regex: bool = Field(
        default=False, description="Whether to treat pattern as a regular expression"
    )
    case_sensitive: bool = Field(
        default=False, description="Whether the search should be case-sensitive"
    )
    context_lines: int = Field(
        default=2, ge=0, description="Number of lines of context to show around matches"
    )
    max_results: int = Field(default=100, ge=1, description="Maximum number of matches to return")
    exclude_patterns: list[str] = Field(
        default_factory=list, description="File patterns to exclude from search"
    )
    include_all_files: bool = Field(
        default=False,
        description=(
            "If false (default), respects .cocoignore file. If true, searches all files "
            "including those that would normally be ignored"
        ),
    )


class ExecuteCommandArgs(ToolArguments):
    command: str = Field(description="The full command to execute (e.g. 'ls -la')")
    timeout: int = Field(
        default=60_000, gt=0, description="Command timeout in milliseconds (default: 60 seconds)"
    )
    env: dict[str, str] | None = Field(
        default=None, description="Environment variables to set for the command"
    )
