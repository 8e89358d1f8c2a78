from __future__ import annotations

import socket
from pathlib import Path

from context_coder.digest import TokenCounters
from context_coder.server import create_server


class WordCounter:
    def count(self, text: str) -> int:
        return len(text.split())


def test_no_network_calls_during_tool_workflow(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "x.py").write_text(
        "def parse(x: str) -> str:\n    return x\n",
        encoding="utf-8",
    )

    def _blocked_create_connection(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError(
            f"Network call attempted: create_connection args={args} kwargs={kwargs}"
        )

    base_socket = socket.socket

    class _BlockedSocket(base_socket):
        def connect(self, address):  # type: ignore[no-untyped-def]
            raise AssertionError(f"Network call attempted: connect address={address}")

    monkeypatch.setattr(socket, "create_connection", _blocked_create_connection)
    monkeypatch.setattr(socket, "socket", _BlockedSocket)

    counters = TokenCounters(claude=WordCounter(), gpt=WordCounter())
    server = create_server(root_dir=str(tmp_path), token_counters=counters, environ={})
    assert server.handle_payload({"id": "req-net-1", "method": "get_codebase_size"})["ok"]
    assert server.handle_payload({"id": "req-net-2", "method": "get_codebase"})["ok"]
    assert server.handle_payload(
        {
            "id": "req-net-3",
            "method": "search_file_content",
            "params": {"path": "src", "pattern": "parse"},
        }
    )["ok"]
    assert server.handle_payload(
        {"id": "req-net-4", "method": "directory_tree", "params": {}}
    )["ok"]
