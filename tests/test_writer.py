"""Tests for writing generated functions into toolkit files."""

import pytest

from plugmate.commands.executor import CommandResult
from plugmate.errors import ValidationFailedError
from plugmate.plugins.catalog import create_plugin_catalog
from plugmate.plugins.writer import (
    create_new_toolkit,
    create_toolkit_writer,
    derive_prefix,
    function_name_from_code,
    list_toolkit_summaries,
    update_functions_index,
    validate_powershell_syntax,
)

ZIP_CODE = "function zip_make {\n    param([string]$Source)\n}"


@pytest.fixture
def no_pwsh(monkeypatch):
    monkeypatch.setattr("plugmate.plugins.writer.shutil.which", lambda name: None)


class StubCaptureExecutor:
    def __init__(self, result):
        self.result = result
        self.inputs = []

    def capture(self, argv, input_text=None, timeout=None):
        self.inputs.append(input_text)
        return self.result


class TestDerivePrefix:
    """Tests for toolkit prefix detection."""

    @pytest.mark.parametrize("functions,expected", [
        ([], ""),
        (["git_status", "git_log"], "git"),
        (["git_branch_list", "git_branch_new"], "git_branch"),
        (["git_branch_list", "git_status"], "git"),
        (["single"], "single"),
    ])
    def test_prefix(self, functions, expected):
        assert derive_prefix(functions) == expected


class TestToolkitFiles:
    """Tests for creating and extending toolkit files."""

    def test_function_name_from_code(self):
        assert function_name_from_code("# comment\nfunction zip_make {\n}") == "zip_make"
        assert function_name_from_code("Write-Host hi") == ""

    def test_create_new_toolkit(self, plugins_dir):
        path = create_new_toolkit(plugins_dir, "Zip", "zip", ZIP_CODE)

        text = path.read_text(encoding="utf-8")
        assert path.name == "Zip_Toolkit.ps1"
        assert "# ZIP TOOLKIT" in text
        assert "# Entry point: zip_*" in text
        assert "#   zip_make\n" in text
        assert "function _assert_path_exists {" in text
        assert text.endswith(ZIP_CODE + "\n")

    def test_existing_toolkit_is_not_overwritten(self, plugins_dir):
        create_new_toolkit(plugins_dir, "Zip", "zip", ZIP_CODE)

        with pytest.raises(ValidationFailedError, match="toolkit already exists"):
            create_new_toolkit(plugins_dir, "Zip", "zip", ZIP_CODE)

    def test_update_functions_index(self, plugins_dir):
        path = create_new_toolkit(plugins_dir, "Zip", "zip", ZIP_CODE)

        assert update_functions_index(path, "zip_list") is True
        assert "# FUNCTIONS\n#   zip_make\n#   zip_list\n# ====" in path.read_text(encoding="utf-8")

    def test_index_without_header(self, write_plugin):
        path = write_plugin("Loose.ps1", "function loose_one {\n}\n")

        assert update_functions_index(path, "loose_two") is False
        assert path.read_text(encoding="utf-8") == "function loose_one {\n}\n"

    def test_toolkit_summaries(self, base_dir, write_plugin):
        write_plugin("toolkits/1_Git_Toolkit.psm1", "function git_status {\n}\nfunction git_log {\n}\n")

        summaries = list_toolkit_summaries(create_plugin_catalog(base_dir))

        assert len(summaries) == 1
        assert summaries[0].label == "Git"
        assert summaries[0].prefix == "git"
        assert summaries[0].functions == ["git_log", "git_status"]


class TestValidateSyntax:
    """Tests for the optional pwsh syntax check."""

    def test_skipped_without_pwsh(self, no_pwsh):
        assert validate_powershell_syntax("function {") is False

    def test_rejected_code(self, monkeypatch):
        monkeypatch.setattr("plugmate.plugins.writer.shutil.which", lambda name: "/usr/bin/pwsh")
        executor = StubCaptureExecutor(
            CommandResult(["pwsh"], 1, stderr="Missing closing '}' in statement block.")
        )

        with pytest.raises(ValidationFailedError, match="Missing closing"):
            validate_powershell_syntax("function a_b {", executor)
        assert executor.inputs == ["function a_b {"]

    def test_accepted_code(self, monkeypatch):
        monkeypatch.setattr("plugmate.plugins.writer.shutil.which", lambda name: "/usr/bin/pwsh")
        executor = StubCaptureExecutor(CommandResult(["pwsh"], 0))

        assert validate_powershell_syntax(ZIP_CODE, executor) is True


class TestToolkitWriter:
    """Tests for placing generated functions."""

    def test_new_toolkit_is_visible_in_catalog(self, base_dir, no_pwsh):
        catalog = create_plugin_catalog(base_dir)
        assert catalog.names() == []

        path = create_toolkit_writer(catalog).write("zip_make", ZIP_CODE, "", True, "zip")

        assert path.name == "Zip_Toolkit.ps1"
        assert catalog.get_info("zip_make").path == str(path)

    def test_append_to_existing_toolkit(self, base_dir, write_plugin, no_pwsh):
        existing = write_plugin("toolkits/Git_Toolkit.psm1", "function git_status {\n}\n")
        catalog = create_plugin_catalog(base_dir)

        path = create_toolkit_writer(catalog).write(
            "git_log", "function git_log {\n}", "Git_Toolkit.psm1", False
        )

        assert path == existing
        assert existing.read_text(encoding="utf-8") == "function git_status {\n}\n\nfunction git_log {\n}\n"
        assert catalog.get_info("git_log").path == str(existing)

    def test_taken_name_is_rejected(self, base_dir, write_plugin, no_pwsh):
        write_plugin("toolkits/Git_Toolkit.psm1", "function git_status {\n}\n")
        writer = create_toolkit_writer(create_plugin_catalog(base_dir))

        with pytest.raises(ValidationFailedError, match="function already exists"):
            writer.write("git_status", "function git_status {\n}", "", True)

    def test_target_outside_plugins_is_left_alone(self, base_dir, plugins_dir, no_pwsh):
        outside = base_dir / "outside" / "bashrc"
        outside.parent.mkdir()
        outside.write_text("export A=1\n", encoding="utf-8")
        catalog = create_plugin_catalog(base_dir)

        path = create_toolkit_writer(catalog).write("zip_make", ZIP_CODE, str(outside), False, "zip")

        assert outside.read_text(encoding="utf-8") == "export A=1\n"
        assert path == plugins_dir / "Zip_Toolkit.ps1"
        assert catalog.get_info("zip_make").path == str(path)

    def test_relative_escape_is_ignored(self, base_dir, plugins_dir, no_pwsh):
        sibling = base_dir / "notes.ps1"
        sibling.write_text("# notes\n", encoding="utf-8")
        writer = create_toolkit_writer(create_plugin_catalog(base_dir))

        path = writer.write("zip_make", ZIP_CODE, "../notes.ps1", False, "zip")

        assert sibling.read_text(encoding="utf-8") == "# notes\n"
        assert path.parent == plugins_dir

    def test_declared_name_must_match(self, base_dir, plugins_dir, no_pwsh):
        writer = create_toolkit_writer(create_plugin_catalog(base_dir))

        with pytest.raises(ValidationFailedError, match="does not declare zip_pack"):
            writer.write("zip_pack", ZIP_CODE, "", True, "zip")
        assert list(plugins_dir.iterdir()) == []

    def test_private_name_is_rejected(self, base_dir, plugins_dir, no_pwsh):
        writer = create_toolkit_writer(create_plugin_catalog(base_dir))

        with pytest.raises(ValidationFailedError, match="must be public"):
            writer.write("_zip_make", "function _zip_make {\n}", "", True, "zip")
        assert list(plugins_dir.iterdir()) == []

    def test_private_helper_before_public_function(self, base_dir, no_pwsh):
        code = "function _zip_helper {\n}\n\nfunction zip_make {\n}"
        catalog = create_plugin_catalog(base_dir)

        path = create_toolkit_writer(catalog).write("zip_make", code, "", True, "zip")

        assert catalog.names() == ["zip_make"]
        assert "# FUNCTIONS\n#   zip_make\n" in path.read_text(encoding="utf-8")
