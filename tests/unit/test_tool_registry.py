from __future__ import annotations

import pytest
from pydantic import BaseModel

from context_coder.tools import ToolDispatchError, ToolRegistry
from context_coder.tools.schemas import GetCodebaseArgs, SearchFileContentArgs


class EchoArgs(BaseModel):
    text: str
    times: int = 1


def test_registry_keeps_deterministic_registration_order() -> None:
    registry = ToolRegistry()
    registry.register("alpha", "First.", EchoArgs, lambda _: {"tool": "alpha"})
    registry.register("beta", "Second.", EchoArgs, lambda _: {"tool": "beta"})

    assert registry.names() == ("alpha", "beta")
    assert [item["name"] for item in registry.describe()] == ["alpha", "beta"]


def test_registry_dispatches_parsed_arguments() -> None:
    registry = ToolRegistry()
    registry.register("echo", "Echo.", EchoArgs, lambda args: {"text": args.text * args.times})

    result = registry.dispatch("echo", {"text": "ab", "times": 2})

    assert result == {"text": "abab"}


def test_unknown_tool_raises_dispatch_error() -> None:
    registry = ToolRegistry()

    with pytest.raises(ToolDispatchError) as excinfo:
        registry.dispatch("missing", {})

    assert excinfo.value.code == "UNKNOWN_TOOL"
    assert excinfo.value.message == "Unknown tool: missing"


def test_invalid_arguments_raise_invalid_params() -> None:
    registry = ToolRegistry()
    registry.register("echo", "Echo.", EchoArgs, lambda args: {"text": args.text})

    with pytest.raises(ToolDispatchError) as excinfo:
        registry.dispatch("echo", {"times": "many"})

    assert excinfo.value.code == "INVALID_PARAMS"
    assert excinfo.value.message.startswith("Invalid arguments for echo: ")
    assert "text" in excinfo.value.message
    assert "times" in excinfo.value.message


def test_describe_exposes_json_schema() -> None:
    registry = ToolRegistry()
    registry.register("get_codebase", "Digest.", GetCodebaseArgs, lambda _: {})

    described = registry.describe()[0]

    assert described["description"] == "Digest."
    properties = described["inputSchema"]["properties"]
    assert set(properties) == {"path", "page", "_pageSize"}


def test_argument_models_accept_wire_names() -> None:
    codebase = GetCodebaseArgs.model_validate({"page": 3, "_pageSize": 30_000})
    search = SearchFileContentArgs.model_validate(
        {"path": ".", "pattern": "x", "useRegex": True, "contextLines": 0, "maxResults": 5}
    )

    assert codebase.page == 3
    assert codebase.page_size == 30_000
    assert search.use_regex is True
    assert search.context_lines == 0
    assert search.max_results == 5
    assert search.include_all_files is False
