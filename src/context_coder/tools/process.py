"""Command execution without a shell, scoped to the root directory."""

from __future__ import annotations

import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class CommandOutcome:
    """Rendered command output and whether it should be reported as an error."""

    text: str
    is_error: bool


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def _render(stdout: str, stderr: str, exit_code: int | None, killed: bool) -> str:
    output = ""
    if stdout:
        output += f"=== stdout ===\n{stdout}\n"
    if stderr:
        output += f"=== stderr ===\n{stderr}\n"
    output += f"=== exit code: {'null' if exit_code is None else exit_code} ==="
    if killed:
        output += "\n=== killed by signal: SIGKILL (timeout) ==="
    return output.strip()


def execute_command(
    root_dir: Path,
    command: str,
    timeout_ms: int = 60_000,
    env: Mapping[str, str] | None = None,
) -> CommandOutcome:
    """Run command in root_dir and collect stdout, stderr and the exit code."""
    argv = shlex.split(command)
    if not argv:
        return CommandOutcome(text="Failed to execute command: command is empty", is_error=True)
    merged_env = {**os.environ, **(env or {})}
    try:
        completed = subprocess.run(
            argv,
            cwd=root_dir,
            env=merged_env,
            capture_output=True,
            timeout=timeout_ms / 1000,
            check=False,
        )
    except subprocess.TimeoutExpired as error:
        text = _render(_decode(error.stdout), _decode(error.stderr), None, killed=True)
        return CommandOutcome(text=text, is_error=True)
    except OSError as error:
        return CommandOutcome(text=f"Failed to execute command: {error}", is_error=True)
    text = _render(
        _decode(completed.stdout), _decode(completed.stderr), completed.returncode, killed=False
    )
    return CommandOutcome(text=text, is_error=completed.returncode != 0)
