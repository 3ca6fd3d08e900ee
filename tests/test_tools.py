"""Tests for the built-in file and system tools."""

import os
import zipfile

import pytest

from plugmate.tools import (
    build_agent_catalog,
    is_known_tool,
    normalize_tool_name,
    run_by_name,
    tool_risk,
)
from plugmate.tools.files import format_size, page_lines, parse_page, resolve_path

from .helpers import scripted_input


@pytest.fixture
def tree(tmp_path):
    """A small directory tree with a handful of files."""
    root = tmp_path / "work"
    (root / "docs").mkdir(parents=True)
    (root / "empty_a").mkdir()
    (root / "nested" / "empty_b").mkdir(parents=True)
    for index in range(12):
        (root / "docs" / f"report_{index:02d}.pdf").write_text("x" * index, encoding="utf-8")
    (root / "notes.txt").write_text("hello", encoding="utf-8")
    return root


class TestRegistry:
    """Tests for tool lookup."""

    @pytest.mark.parametrize("name,expected", [
        ("search", "search"),
        ("S", "search"),
        ("rec", "recent"),
        ("htop", "system"),
        ("c", "clean"),
        ("teleport", ""),
        ("", ""),
    ])
    def test_normalize(self, name, expected):
        assert normalize_tool_name(name) == expected

    def test_is_known_tool(self):
        assert is_known_tool("backup")
        assert not is_known_tool("format")

    def test_agent_catalog(self):
        catalog = build_agent_catalog()

        assert "- search: Search files by name/extension | tool_args: base, ext, name, sort, limit, offset" in catalog
        assert "- system: Show system/network snapshot | (no args needed)" in catalog

    @pytest.mark.parametrize("name,args,expected", [
        ("search", {}, "low"),
        ("rename", {}, "medium"),
        ("backup", {}, "medium"),
        ("clean", {}, "low"),
        ("clean", {"apply": "true"}, "high"),
        ("unknown", {}, "low"),
    ])
    def test_tool_risk(self, name, args, expected):
        assert tool_risk(name, args)[0] == expected


class TestPaging:
    """Tests for result paging helpers."""

    def test_parse_page(self):
        assert parse_page({}) == (0, 10)
        assert parse_page({"offset": "5", "limit": "3"}) == (5, 3)
        assert parse_page({"offset": "-4", "limit": "zero"}) == (0, 10)

    def test_page_lines_empty(self):
        assert page_lines([], 0, 10) == (["No files found."], 0)

    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2.0 KB"


class TestSearch:
    """Tests for the search tool."""

    def test_first_page_offers_more(self, tree):
        result = run_by_name(tree, "search", {"ext": "pdf"})

        assert result.code == 0
        assert result.output.startswith("Showing 1-10 of 12 results")
        assert result.can_continue is True
        assert result.continue_prompt == "Show next 2 search results? [Y/n]: "
        assert result.continue_params == {"ext": "pdf", "offset": "10", "limit": "10"}

    def test_last_page(self, tree):
        result = run_by_name(tree, "s", {"ext": ".pdf", "offset": "10"})

        assert result.output.startswith("Showing 11-12 of 12 results")
        assert result.can_continue is False

    def test_name_filter_and_size_sort(self, tree):
        result = run_by_name(tree, "search", {"name": "REPORT_1", "sort": "size"})

        lines = result.output.splitlines()
        assert lines[0] == "Showing 1-2 of 2 results"
        assert "report_11.pdf" in lines[1]
        assert "report_10.pdf" in lines[2]

    def test_missing_base(self, tree):
        result = run_by_name(tree, "search", {"base": str(tree / "nope")})

        assert result.code == 1
        assert result.output.startswith("Error: base path not found")

    def test_unknown_tool(self, tree):
        result = run_by_name(tree, "teleport")
        assert (result.code, result.output) == (1, "Unknown tool: teleport")


class TestClean:
    """Tests for the clean tool."""

    def test_preview_keeps_folders(self, tree):
        result = run_by_name(tree, "clean", {})

        assert result.output.startswith("Found 2 empty folder(s)")
        assert (tree / "empty_a").is_dir()

    def test_apply_deletes_folders(self, tree):
        result = run_by_name(tree, "clean", {"apply": "yes"})

        assert result.output.startswith("Deleted 2 empty folder(s)")
        assert not (tree / "empty_a").exists()
        assert not (tree / "nested" / "empty_b").exists()
        assert (tree / "docs").is_dir()


class TestRename:
    """Tests for the rename tool."""

    def test_apply_without_prompt(self, tree):
        reader = scripted_input()

        result = run_by_name(tree, "rename", {"from": "REPORT", "to": "summary", "apply": "true"}, reader)

        assert reader.prompts == []
        assert "Renamed 12 file(s)." in result.output
        assert (tree / "docs" / "summary_00.pdf").exists()
        assert not (tree / "docs" / "report_00.pdf").exists()

    def test_declined_preview(self, tree):
        result = run_by_name(tree, "rename", {"from": "notes", "to": "memo"}, scripted_input("n"))

        assert result.output.endswith("Canceled.")
        assert (tree / "notes.txt").exists()

    def test_confirmed_preview(self, tree):
        result = run_by_name(tree, "r", {"from": "notes", "to": "memo"}, scripted_input("y"))

        assert result.code == 0
        assert (tree / "memo.txt").exists()

    def test_case_sensitive_match(self, tree):
        result = run_by_name(
            tree, "rename", {"from": "NOTES", "to": "memo", "case_sensitive": "true"}, scripted_input()
        )
        assert result.output == "No files to rename."

    def test_colliding_targets_rename_nothing(self, tmp_path):
        (tmp_path / "ab.txt").write_text("first", encoding="utf-8")
        (tmp_path / "abb.txt").write_text("second", encoding="utf-8")

        result = run_by_name(
            tmp_path, "rename", {"from": "b", "to": "", "case_sensitive": "true", "apply": "true"},
            scripted_input(),
        )

        assert result.code == 1
        assert "more than one file would be renamed to" in result.output
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ab.txt", "abb.txt"]

    def test_missing_from_value(self, tree):
        result = run_by_name(tree, "rename", {}, scripted_input())

        assert result.code == 1
        assert result.output == "Error: replace-from is required"


class TestRecentAndBackup:
    """Tests for the recent and backup tools."""

    def test_recent_newest_first(self, tree):
        newest = tree / "docs" / "report_03.pdf"
        os.utime(newest, (4_000_000_000, 4_000_000_000))

        result = run_by_name(tree, "recent", {"limit": "1"})

        assert "report_03.pdf" in result.output.splitlines()[1]
        assert result.continue_prompt == "Show next 1 recent files? [Y/n]: "

    def test_backup_zip(self, tree, tmp_path):
        out = tmp_path / "backups"

        result = run_by_name(tree, "backup", {"source": str(tree), "output": str(out)})

        assert result.output.startswith("Backup created: ")
        archives = list(out.glob("work-*.zip"))
        assert len(archives) == 1
        with zipfile.ZipFile(archives[0]) as zf:
            assert "notes.txt" in zf.namelist()
            assert "docs/report_00.pdf" in zf.namelist()


class TestSystem:
    def test_snapshot_has_host_line(self, tree):
        result = run_by_name(tree, "system")

        assert result.code == 0
        assert result.output.strip()


class TestResolvePath:
    def test_shortcuts_map_into_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))

        assert resolve_path("Downloads") == tmp_path / "Downloads"
        assert resolve_path("~/desktop") == tmp_path / "Desktop"

    def test_empty_uses_fallback(self, tmp_path):
        assert resolve_path("", tmp_path) == tmp_path.resolve()
