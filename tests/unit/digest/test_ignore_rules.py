from __future__ import annotations

from pathlib import Path

from context_coder.digest import (
    PROJECT_IGNORE_FILE,
    IgnoreRules,
    load_ignore_rules,
    resolve_ignore_file,
)


def test_negation_reincludes_later_matches() -> None:
    rules = IgnoreRules.from_lines(["*.log", "!keep.log"])

    assert rules.is_ignored("a.log") is True
    assert rules.is_ignored("dir/a.log") is True
    assert rules.is_ignored("keep.log") is False


def test_trailing_slash_matches_directories_only() -> None:
    rules = IgnoreRules.from_lines(["build/"])

    assert rules.is_ignored("build", is_dir=True) is True
    assert rules.is_ignored("build") is False
    assert rules.is_ignored("build/out.py") is True
    assert rules.is_ignored("src/build/out.py") is True


def test_patterns_with_slash_are_anchored_to_root() -> None:
    rules = IgnoreRules.from_lines(["docs/*.md", "/root.txt"])

    assert rules.is_ignored("docs/a.md") is True
    assert rules.is_ignored("x/docs/a.md") is False
    assert rules.is_ignored("docs/sub/a.md") is False
    assert rules.is_ignored("root.txt") is True
    assert rules.is_ignored("sub/root.txt") is False


def test_double_star_crosses_directories() -> None:
    rules = IgnoreRules.from_lines(["**/gen/**", "fixtures/**/*.json"])

    assert rules.is_ignored("a/gen/x.py") is True
    assert rules.is_ignored("gen/x.py") is True
    assert rules.is_ignored("fixtures/a/b/c.json") is True
    assert rules.is_ignored("fixtures/c.json") is True
    assert rules.is_ignored("fixtures/c.yaml") is False


def test_blank_lines_and_comments_are_skipped() -> None:
    rules = IgnoreRules.from_lines(["# comment", "", "   ", "!", "/"])

    assert len(rules.spec) == 0
    assert rules.is_ignored("anything.py") is False


def test_double_star_inside_a_segment_stays_within_it() -> None:
    rules = IgnoreRules.from_lines(["src/a**b"])

    assert rules.is_ignored("src/axyzb") is True
    assert rules.is_ignored("src/a/c/b") is False


def test_negation_cannot_reinclude_inside_an_ignored_directory() -> None:
    rules = IgnoreRules.from_lines(["logs/", "!logs/keep.txt"])

    assert rules.is_ignored("logs/keep.txt") is True


def test_default_patterns_cover_dependencies_and_secrets(tmp_path: Path) -> None:
    rules = load_ignore_rules(tmp_path)

    assert rules.is_ignored("node_modules/pkg/index.js") is True
    assert rules.is_ignored(".env") is True
    assert rules.is_ignored("certs/server.pem") is True
    assert rules.is_ignored("src/main.py") is False


def test_additional_ignores_are_appended(tmp_path: Path) -> None:
    rules = load_ignore_rules(tmp_path, additional_ignores=(PROJECT_IGNORE_FILE,))

    assert rules.is_ignored(PROJECT_IGNORE_FILE) is True


def test_resolve_ignore_file_prefers_project_file(tmp_path: Path) -> None:
    assert resolve_ignore_file(tmp_path) is None

    (tmp_path / PROJECT_IGNORE_FILE).write_text("*.tmp\n", encoding="utf-8")

    assert resolve_ignore_file(tmp_path) == PROJECT_IGNORE_FILE


def test_ignore_file_directory_is_not_an_ignore_file(tmp_path: Path) -> None:
    (tmp_path / PROJECT_IGNORE_FILE).mkdir()

    assert resolve_ignore_file(tmp_path) is None
