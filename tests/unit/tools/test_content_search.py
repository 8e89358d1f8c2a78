from __future__ import annotations

from pathlib import Path

import pytest

from context_coder.tools.filesystem import find_content_matches, format_content_matches


def _write(root: Path, relative: str, content: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


def test_match_carries_line_number_and_context(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.py", "one\nTODO fix\nthree")

    matches = find_content_matches(tmp_path, ".", "todo")

    assert len(matches) == 1
    match = matches[0]
    assert match.file == "src/app.py"
    assert match.line_number == 2
    assert match.matched_text == "TODO"
    assert match.context_start == 1
    assert match.context == ("one", "TODO fix", "three")


def test_case_sensitive_and_regex_modes(tmp_path: Path) -> None:
    _write(tmp_path, "app.py", "value = 10\nVALUE = 20\n")

    sensitive = find_content_matches(tmp_path, ".", "value", case_sensitive=True)
    regex = find_content_matches(tmp_path, ".", r"\d+", use_regex=True, context_lines=0)

    assert [item.line_number for item in sensitive] == [1]
    assert [item.matched_text for item in regex] == ["10", "20"]
    assert regex[0].context == ("value = 10",)


def test_invalid_regex_raises_value_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Invalid regex pattern"):
        find_content_matches(tmp_path, ".", "(", use_regex=True)


def test_ignore_rules_apply_unless_all_files_requested(tmp_path: Path) -> None:
    _write(tmp_path, ".cocoignore", "secret.py\n")
    _write(tmp_path, "secret.py", "needle\n")
    _write(tmp_path, "public.py", "needle\n")

    filtered = find_content_matches(tmp_path, ".", "needle")
    everything = find_content_matches(tmp_path, ".", "needle", include_all_files=True)

    assert [item.file for item in filtered] == ["public.py"]
    assert [item.file for item in everything] == ["public.py", "secret.py"]


def test_binary_extensions_and_vendor_dirs_are_skipped(tmp_path: Path) -> None:
    _write(tmp_path, "logo.png", "needle")
    _write(tmp_path, "node_modules/lib.js", "needle")
    _write(tmp_path, "main.js", "needle")

    matches = find_content_matches(tmp_path, ".", "needle", include_all_files=True)

    assert [item.file for item in matches] == ["main.js"]


def test_exclude_patterns_and_single_file_paths(tmp_path: Path) -> None:
    _write(tmp_path, "a.py", "needle\n")
    _write(tmp_path, "b.md", "needle\n")

    excluded = find_content_matches(tmp_path, ".", "needle", exclude_patterns=["*.md"])
    single = find_content_matches(tmp_path, "b.md", "needle")

    assert [item.file for item in excluded] == ["a.py"]
    assert [item.file for item in single] == ["b.md"]


def test_missing_search_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Path not found: nope"):
        find_content_matches(tmp_path, "nope", "x")


def test_formatted_output_groups_by_file(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.py", "one\nTODO fix\nthree")
    matches = find_content_matches(tmp_path, ".", "TODO")

    text = format_content_matches("TODO", matches, max_results=100)

    assert text.startswith('Found 1 match(es) for pattern "TODO":')
    assert "📄 **src/app.py** (1 match)" in text
    assert "**Line 2:** `TODO`" in text
    assert "  1: one\n> 2: TODO fix\n  3: three" in text
    assert "Search limited" not in text


def test_result_limit_is_reported(tmp_path: Path) -> None:
    _write(tmp_path, "many.txt", "\n".join(["hit"] * 5))
    matches = find_content_matches(tmp_path, ".", "hit", max_results=3)

    text = format_content_matches("hit", matches, max_results=3)

    assert len(matches) == 3
    assert "(3 matches)" in text
    assert "⚠️ Search limited to 3 results." in text


def test_no_matches_message() -> None:
    assert format_content_matches("absent", [], max_results=10) == (
        'No matches found for pattern "absent"'
    )


def test_ignore_file_is_read_at_the_searched_path(tmp_path: Path) -> None:
    _write(tmp_path, "pkg/.cocoignore", "generated.py\n")
    _write(tmp_path, "pkg/generated.py", "needle\n")
    _write(tmp_path, "pkg/real.py", "needle\n")
    _write(tmp_path, "generated.py", "needle\n")

    scoped = find_content_matches(tmp_path, "pkg", "needle")
    from_root = find_content_matches(tmp_path, ".", "needle")

    assert [item.file for item in scoped] == ["pkg/real.py"]
    assert [item.file for item in from_root] == [
        "generated.py",
        "pkg/generated.py",
        "pkg/real.py",
    ]
