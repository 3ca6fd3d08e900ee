"""Tests for plugin metadata parsing."""

from plugmate.plugins.parser import (
    ParameterDetail,
    missing_mandatory_parameters,
    parse_function_help,
    parse_param_block,
    read_function_names,
)

GIT_TOOLKIT = """\
Set-StrictMode -Version Latest

<#
.SYNOPSIS
Resets a git branch
to its remote state.
.DESCRIPTION
Hard reset, then clean.
.PARAMETER Branch
Branch to reset.
Defaults to the current one.
.PARAMETER force
Skip the prompt.
.EXAMPLE
git_reset -Branch main
.EXAMPLE
git_reset -Force
#>

function git_reset {
    param(
        [Parameter(Mandatory = $true)]
        [ValidateSet('main', 'dev')]
        [string]$Branch,
        [switch]$Force,
        [int]$Depth = 5
    )
    git reset --hard
}

function _git_helper {
    param([string]$Path)
}

# stray comment
function git_status {
    git status
}
"""


class TestReadFunctionNames:
    """Tests for public function discovery."""

    def test_private_helpers_are_skipped(self):
        assert read_function_names(GIT_TOOLKIT) == ["git_reset", "git_status"]

    def test_duplicates_are_reported_once(self):
        text = "function a_b {}\nfunction a_b {}\n"
        assert read_function_names(text) == ["a_b"]


class TestParseFunctionHelp:
    """Tests for comment-based help extraction."""

    def test_sections_are_parsed(self):
        help_info = parse_function_help(GIT_TOOLKIT, "git_reset")

        assert help_info.synopsis == "Resets a git branch to its remote state."
        assert help_info.description == "Hard reset, then clean."
        assert help_info.examples == ["git_reset -Branch main", "git_reset -Force"]

    def test_parameter_prose_is_joined_and_sorted(self):
        help_info = parse_function_help(GIT_TOOLKIT, "git_reset")

        assert help_info.parameters == [
            "Branch: Branch to reset. Defaults to the current one.",
            "force: Skip the prompt.",
        ]

    def test_function_lookup_is_case_insensitive(self):
        assert parse_function_help(GIT_TOOLKIT, "GIT_RESET").synopsis.startswith("Resets")

    def test_non_adjacent_block_is_ignored(self):
        assert parse_function_help(GIT_TOOLKIT, "git_status").synopsis == ""

    def test_blank_lines_keep_adjacency(self):
        text = "<#\n.SYNOPSIS\nHello.\n#>\n\n\nfunction x_y {}\n"
        assert parse_function_help(text, "x_y").synopsis == "Hello."

    def test_parameter_without_text_is_bare_name(self):
        text = "<#\n.PARAMETER Path\n#>\nfunction x_y {}\n"
        assert parse_function_help(text, "x_y").parameters == ["Path"]

    def test_unknown_function_gives_empty_help(self):
        help_info = parse_function_help(GIT_TOOLKIT, "nope")
        assert help_info.synopsis == ""
        assert help_info.parameters == []


class TestParseParamBlock:
    """Tests for param() declaration parsing."""

    def test_declarations(self):
        params = parse_param_block(GIT_TOOLKIT, "git_reset")

        assert [p.name for p in params] == ["Branch", "Force", "Depth"]
        branch, force, depth = params
        assert branch.mandatory is True
        assert branch.type == "string"
        assert branch.allowed_values == ["main", "dev"]
        assert force.is_switch is True
        assert force.mandatory is False
        assert depth.type == "int"
        assert depth.default == "5"

    def test_pending_attributes_reset_after_each_parameter(self):
        params = parse_param_block(GIT_TOOLKIT, "git_reset")
        assert params[1].allowed_values == []
        assert params[2].mandatory is False

    def test_mandatory_false_is_optional(self):
        text = "function a_b {\n    param(\n        [Parameter(Mandatory = $false)][string]$Name\n    )\n}\n"
        assert parse_param_block(text, "a_b")[0].mandatory is False

    def test_single_line_block(self):
        text = "function a_b {\n    param([Parameter(Mandatory)][string]$Name, [switch]$Quiet)\n}\n"
        params = parse_param_block(text, "a_b")

        assert [(p.name, p.mandatory, p.is_switch) for p in params] == [
            ("Name", True, False),
            ("Quiet", False, True),
        ]

    def test_function_without_parameters(self):
        assert parse_param_block(GIT_TOOLKIT, "git_status") == []

    def test_unbalanced_block_keeps_complete_parameters(self):
        text = "function a_b {\n    param(\n        [string]$Name,\n        [int]$Count\n"
        params = parse_param_block(text, "a_b")
        assert [p.name for p in params] == ["Name"]


class TestMissingMandatoryParameters:
    """Tests for the mandatory parameter check."""

    def test_reports_missing_names(self):
        details = [
            ParameterDetail("Path", mandatory=True),
            ParameterDetail("Force", type="switch", mandatory=True, is_switch=True),
            ParameterDetail("Depth"),
        ]
        assert missing_mandatory_parameters(details, {}) == ["Path"]

    def test_keys_match_case_insensitively_with_dash(self):
        details = [ParameterDetail("Path", mandatory=True)]
        assert missing_mandatory_parameters(details, {"-path": "x"}) == []

    def test_blank_value_counts_as_missing(self):
        details = [ParameterDetail("Path", mandatory=True)]
        assert missing_mandatory_parameters(details, {"Path": "  "}) == ["Path"]
