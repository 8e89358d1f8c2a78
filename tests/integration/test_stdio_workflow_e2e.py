from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any


def test_stdio_workflow_e2e(tmp_path: Path) -> None:
    root = tmp_path / "root"
    data_dir = tmp_path / "data"
    root.mkdir()
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text(
        "def parse_token(text: str) -> str:\n    return text.strip()\n",
        encoding="utf-8",
    )

    proc = _start_server(root_dir=root, data_dir=data_dir)
    try:
        listed = _call_tool(proc, "req-e2e-1", "tools/list", {})
        assert listed["ok"] is True
        assert len(listed["result"]["tools"]) == 13

        digest = _call_tool(proc, "req-e2e-2", "get_codebase", {"page": 1})
        assert digest["ok"] is True
        assert digest["result"]["content"][0]["text"].startswith("# src/app.py\n\n```python\n")

        written = _call_tool(
            proc,
            "req-e2e-3",
            "write_file",
            {"path": "./notes/todo.md", "content": "- parse tokens\n"},
        )
        assert written["result"]["content"][0]["text"] == "Successfully wrote to notes/todo.md"

        read = _call_tool(proc, "req-e2e-4", "read_file", {"path": "notes/todo.md"})
        assert read["result"]["content"][0]["text"] == "- parse tokens\n"

        found = _call_tool(
            proc,
            "req-e2e-5",
            "search_file_content",
            {"path": ".", "pattern": "parse", "contextLines": 0},
        )
        found_text = found["result"]["content"][0]["text"]
        assert "Found 2 match(es)" in found_text
        assert "📄 **notes/todo.md**" in found_text
        assert "📄 **src/app.py**" in found_text

        blocked = _call_tool(proc, "req-e2e-6", "read_file", {"path": "../outside"})
        assert blocked["blocked"] is True

        listing = _call_tool(proc, "req-e2e-7", "list_directory", {"path": "."})
        assert listing["result"]["content"][0]["text"] == "[DIR] notes\n[DIR] src"
    finally:
        _stop_server(proc)

    audit_lines = (data_dir / "audit.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["request_id"] for line in audit_lines] == [
        "req-e2e-2",
        "req-e2e-3",
        "req-e2e-4",
        "req-e2e-5",
        "req-e2e-6",
        "req-e2e-7",
    ]


def _start_server(root_dir: Path, data_dir: Path) -> subprocess.Popen[str]:
    env = os.environ.copy()
    workspace_root = Path(__file__).resolve().parents[2]
    src_path = workspace_root / "src"
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(src_path) if not existing else f"{src_path}{os.pathsep}{existing}"
    env.pop("CONTEXT_CODER_MODE", None)
    cmd = [
        sys.executable,
        "-m",
        "context_coder.server",
        "--root-dir",
        str(root_dir),
        "--data-dir",
        str(data_dir),
    ]
    return subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        env=env,
    )


def _call_tool(
    proc: subprocess.Popen[str],
    request_id: str,
    method: str,
    params: dict[str, object],
) -> dict[str, Any]:
    assert proc.stdin is not None
    assert proc.stdout is not None
    payload = {"id": request_id, "method": method, "params": params}
    proc.stdin.write(json.dumps(payload) + "\n")
    proc.stdin.flush()
    line = proc.stdout.readline()
    if not line:
        stderr_output = ""
        if proc.stderr is not None:
            stderr_output = proc.stderr.read()
        raise RuntimeError(f"Server produced no response. stderr={stderr_output}")
    return json.loads(line)


def _stop_server(proc: subprocess.Popen[str]) -> None:
    if proc.stdin is not None:
        proc.stdin.close()
    proc.wait(timeout=5)
    if proc.returncode != 0 and proc.stderr is not None:
        stderr_output = proc.stderr.read()
        raise AssertionError(f"Server exited with code {proc.returncode}: {stderr_output}")
