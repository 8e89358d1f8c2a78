from __future__ import annotations

import io
import json
from pathlib import Path

from context_coder.server import create_server


def test_stdio_server_routes_multiple_requests(tmp_path: Path) -> None:
    (tmp_path / "hello.py").write_text("print('hi')\n", encoding="utf-8")
    server = create_server(root_dir=str(tmp_path), environ={})
    in_stream = io.StringIO(
        "\n".join(
            [
                json.dumps({"id": "req-1", "method": "tools/list", "params": {}}),
                "",
                "{broken",
                json.dumps(
                    {
                        "id": "req-2",
                        "method": "tools/call",
                        "params": {"name": "get_codebase", "arguments": {}},
                    }
                ),
            ]
        )
        + "\n"
    )
    out_stream = io.StringIO()

    server.serve(in_stream=in_stream, out_stream=out_stream)
    lines = [line for line in out_stream.getvalue().splitlines() if line]

    assert len(lines) == 3
    first, broken, second = (json.loads(line) for line in lines)

    assert first["request_id"] == "req-1"
    assert first["ok"] is True
    assert [tool["name"] for tool in first["result"]["tools"]][:3] == [
        "get_codebase_size",
        "get_codebase",
        "get_codebase_top_largest_files",
    ]

    assert broken["error"]["code"] == "INVALID_JSON"

    assert second["request_id"] == "req-2"
    assert second["ok"] is True
    assert second["result"] == {
        "content": [{"type": "text", "text": "# hello.py\n\n```python\nprint('hi')\n```\n\n"}],
        "isError": False,
    }


def test_tools_list_includes_input_schemas(tmp_path: Path) -> None:
    server = create_server(root_dir=str(tmp_path), environ={})

    response = server.handle_payload({"id": "req-3", "method": "tools/list"})
    tools = {tool["name"]: tool for tool in response["result"]["tools"]}

    assert "edit_file" not in tools
    assert tools["search_file_content"]["inputSchema"]["required"] == ["path", "pattern"]
    assert "useRegex" in tools["search_file_content"]["inputSchema"]["properties"]
    assert tools["get_codebase"]["description"].startswith("Generate a merged markdown file")
