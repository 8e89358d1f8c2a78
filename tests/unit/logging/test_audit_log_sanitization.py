from __future__ import annotations

import json
from pathlib import Path

from context_coder.logging import sanitize_arguments
from context_coder.server import create_server


def test_free_text_arguments_are_reduced_to_lengths() -> None:
    sanitized = sanitize_arguments(
        {
            "path": "notes/todo.txt",
            "content": "API_KEY=top-secret",
            "page": 2,
            "useRegex": True,
            "excludePatterns": ["*.md"],
            "env": {"TOKEN": "abc"},
        }
    )

    assert sanitized == {
        "content_length": len("API_KEY=top-secret"),
        "content_present": True,
        "env_keys": ["TOKEN"],
        "env_type": "dict",
        "excludePatterns_length": 1,
        "excludePatterns_type": "list",
        "page": 2,
        "path": "notes/todo.txt",
        "useRegex": True,
    }


def test_audit_log_never_contains_written_content(tmp_path: Path) -> None:
    server = create_server(root_dir=str(tmp_path), environ={})
    server.handle_payload(
        {
            "id": "req-200",
            "method": "write_file",
            "params": {"path": "config.env.txt", "content": "API_KEY=top-secret"},
        }
    )

    audit_path = tmp_path / ".context_coder" / "audit.jsonl"
    event = json.loads(audit_path.read_text(encoding="utf-8").splitlines()[-1])

    assert event["ok"] is True
    assert event["metadata"]["content_present"] is True
    assert "content" not in event["metadata"]
    assert "API_KEY=top-secret" not in json.dumps(event, sort_keys=True)


def test_commands_are_not_logged_verbatim(tmp_path: Path) -> None:
    server = create_server(root_dir=str(tmp_path), environ={})
    server.handle_payload(
        {"id": "req-201", "method": "execute_command", "params": {"command": "echo s3cr3t"}}
    )

    audit_path = tmp_path / ".context_coder" / "audit.jsonl"
    text = audit_path.read_text(encoding="utf-8")

    assert "s3cr3t" not in text
    assert '"command_length": 11' in text
