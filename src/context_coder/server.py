"""STDIO tool server entrypoint.

Each input line is one JSON request ``{"id", "method", "params"}`` and each
output line is one envelope::

    {"request_id", "ok", "result", "warnings", "blocked", "error"?}

``method`` is ``tools/list``, ``tools/call`` (with ``params.name`` and
``params.arguments``) or a tool name used directly with ``params`` as its
arguments. ``prompts/list`` and ``prompts/get`` serve the starter prompts.
A failing request yields an error envelope; the loop keeps serving.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TextIO

from context_coder.config import (
    TOOL_MODES,
    CliOverrides,
    ServerConfig,
    default_root_dir,
    load_effective_config,
)
from context_coder.digest import TokenCounters, default_token_counters
from context_coder.logging import AuditEvent, JsonlAuditLogger, configure_logging, get_logger
from context_coder.prompts import UnknownPromptError, get_prompt, list_prompts
from context_coder.security import PathBlockedError
from context_coder.tools.builtin import register_builtin_tools
from context_coder.tools.registry import ToolDispatchError, ToolRegistry

log = get_logger("server")

LIST_TOOLS_METHOD = "tools/list"
CALL_TOOL_METHOD = "tools/call"
LIST_PROMPTS_METHOD = "prompts/list"
GET_PROMPT_METHOD = "prompts/get"
AUDIT_FILE_NAME = "audit.jsonl"


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


class RequestError(Exception):
    """A request rejected before any tool runs."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def envelope(
    request_id: str,
    result: dict[str, object] | None = None,
    *,
    error: tuple[str, str] | None = None,
    blocked: bool = False,
) -> dict[str, object]:
    """Build the response envelope; error is a (code, message) pair."""
    response: dict[str, object] = {
        "request_id": request_id,
        "ok": error is None,
        "result": result or {},
        "warnings": [],
        "blocked": blocked,
    }
    if error is not None:
        code, message = error
        response["error"] = {"code": code, "message": message}
    return response


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(
        prog="context-coder",
        description="Serve codebase digest and file tools over line-delimited JSON on stdio.",
    )
    parser.add_argument("--root-dir", default=None, help="Defaults to ./mount when COCO_DEV=true.")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--mode", choices=TOOL_MODES, default=None)
    parser.add_argument("--page-size", type=int, default=None)
    parser.add_argument("--claude-token-limit", type=int, default=None)
    parser.add_argument("--gpt-token-limit", type=int, default=None)
    parser.add_argument("--no-audit", action="store_true", help="Do not write audit.jsonl.")
    return parser


class StdioServer:
    """Line-delimited JSON server routing requests to registered tools."""

    def __init__(
        self,
        config: ServerConfig,
        token_counters: TokenCounters | None = None,
    ) -> None:
        self._config = config
        self._audit_logger = (
            JsonlAuditLogger(path=config.data_dir / AUDIT_FILE_NAME)
            if config.audit_enabled
            else None
        )
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            config,
            token_counters or default_token_counters(),
        )
        self._fallback_request_counter = 0

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer every non-blank input line with exactly one output line."""
        log.info(
            "server started",
            root_dir=str(self._config.root_dir),
            mode=self._config.mode,
            tools=len(self._registry.names()),
        )
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(json.dumps(response, sort_keys=True) + "\n")
            out_stream.flush()
        log.info("server stopped")

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            response = envelope(
                self.next_request_id(),
                error=("INVALID_JSON", "Request must be valid JSON."),
            )
            self._audit("invalid_json", {"raw_line_length": len(raw_line)}, response)
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate, dispatch and audit one parsed request."""
        try:
            request = self.parse_request(payload)
        except RequestError as error:
            request_id = self._payload_request_id(payload)
            response = envelope(request_id, error=(error.code, error.message))
            self._audit("invalid_request", {}, response)
            return response

        if request.method == LIST_TOOLS_METHOD:
            return envelope(request.request_id, {"tools": self._registry.describe()})
        if request.method == LIST_PROMPTS_METHOD:
            return envelope(request.request_id, {"prompts": list_prompts()})
        if request.method == GET_PROMPT_METHOD:
            return self._get_prompt(request)

        try:
            tool_name, arguments = self._tool_call(request)
        except RequestError as error:
            return envelope(request.request_id, error=(error.code, error.message))

        response = self._dispatch(request.request_id, tool_name, arguments)
        self._audit(tool_name, arguments, response)
        return response

    def parse_request(self, payload: object) -> Request:
        """Normalize a payload or raise RequestError."""
        if not isinstance(payload, dict):
            raise RequestError("INVALID_REQUEST", "Request must be an object.")
        method = payload.get("method")
        params = payload.get("params")
        if not isinstance(method, str) or not method:
            raise RequestError("INVALID_REQUEST", "Request method must be a non-empty string.")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise RequestError("INVALID_PARAMS", "Request params must be an object.")
        return Request(
            request_id=self._payload_request_id(payload),
            method=method,
            params=params,
        )

    def next_request_id(self) -> str:
        """Generate deterministic fallback request IDs for invalid/missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    def _payload_request_id(self, payload: object) -> str:
        raw = payload.get("id") if isinstance(payload, dict) else None
        if isinstance(raw, str) and raw:
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return str(raw)
        return self.next_request_id()

    @staticmethod
    def _get_prompt(request: Request) -> dict[str, object]:
        name = request.params.get("name")
        arguments = request.params.get("arguments")
        if not isinstance(name, str) or not name:
            return envelope(
                request.request_id,
                error=("INVALID_PARAMS", "prompts/get params.name must be a non-empty string."),
            )
        if arguments is not None and not isinstance(arguments, dict):
            return envelope(
                request.request_id,
                error=("INVALID_PARAMS", "prompts/get params.arguments must be an object."),
            )
        try:
            result = get_prompt(name, arguments)
        except UnknownPromptError as error:
            return envelope(request.request_id, error=("UNKNOWN_PROMPT", str(error)))
        except ValueError as error:
            return envelope(request.request_id, error=("INVALID_PARAMS", str(error)))
        return envelope(request.request_id, result)

    @staticmethod
    def _tool_call(request: Request) -> tuple[str, dict[str, object]]:
        if request.method != CALL_TOOL_METHOD:
            return request.method, request.params
        name = request.params.get("name")
        arguments = request.params.get("arguments")
        if not isinstance(name, str) or not name:
            raise RequestError(
                "INVALID_PARAMS", "tools/call params.name must be a non-empty string."
            )
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RequestError("INVALID_PARAMS", "tools/call params.arguments must be an object.")
        return name, arguments

    def _dispatch(
        self, request_id: str, tool_name: str, arguments: dict[str, object]
    ) -> dict[str, object]:
        try:
            result = self._registry.dispatch(name=tool_name, arguments=arguments)
        except PathBlockedError as error:
            log.warning("path blocked", tool=tool_name, reason=error.reason)
            return envelope(
                request_id,
                {"reason": error.reason, "hint": error.hint},
                error=("PATH_BLOCKED", error.reason),
                blocked=True,
            )
        except ToolDispatchError as error:
            return envelope(request_id, error=(error.code, error.message))
        except Exception:
            log.exception("unhandled tool error", tool=tool_name)
            return envelope(
                request_id,
                error=("INTERNAL_ERROR", "Unhandled server error while executing tool."),
            )
        return envelope(request_id, result)

    def _audit(
        self, tool_name: str, arguments: dict[str, object], response: dict[str, object]
    ) -> None:
        if self._audit_logger is None:
            return
        event = AuditEvent.from_envelope(tool_name, arguments, response)
        try:
            self._audit_logger.append(event)
        except OSError as error:
            log.warning("audit append failed", path=str(self._audit_logger.path), error=str(error))


def create_server(
    root_dir: str | None = None,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
    token_counters: TokenCounters | None = None,
    environ: Mapping[str, str] | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    env = os.environ if environ is None else environ
    root = Path(root_dir) if root_dir is not None else default_root_dir(env)
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = replace(overrides, data_dir=Path(data_dir))
    config = load_effective_config(root_dir=root, overrides=overrides, environ=env)
    return StdioServer(config=config, token_counters=token_counters)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the context-coder server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging()
    overrides = CliOverrides(
        data_dir=Path(args.data_dir) if args.data_dir is not None else None,
        mode=args.mode,
        page_size=args.page_size,
        claude_token_limit=args.claude_token_limit,
        gpt_token_limit=args.gpt_token_limit,
        audit_enabled=False if args.no_audit else None,
    )
    try:
        server = create_server(root_dir=args.root_dir, cli_overrides=overrides)
    except ValueError as error:
        parser.error(str(error))
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
