"""Tests for risk assessment and the confirmation gate."""

import pytest

from plugmate.commands.permissions import create_confirmation_gate
from plugmate.core.risk import assess_decision_risk, create_risk_assessor
from plugmate.errors import ConfigError
from plugmate.llm.decision import Action, DecisionResult

from .helpers import scripted_input


class TestRiskAssessor:
    """Tests for decision risk classification."""

    @pytest.mark.parametrize("plugin,expected", [
        ("git_reset_branch", "high"),
        ("db_DROP_table", "high"),
        ("files_delete_old", "high"),
        ("git_status", "medium"),
    ])
    def test_plugin_names(self, plugin, expected):
        risk, _ = assess_decision_risk(DecisionResult(action=Action.RUN_PLUGIN, plugin=plugin))
        assert risk == expected

    def test_tool_clean_preview_is_low(self):
        risk, reason = assess_decision_risk(DecisionResult(action=Action.RUN_TOOL, tool="clean"))
        assert (risk, reason) == ("low", "preview only")

    def test_tool_clean_apply_is_high(self):
        decision = DecisionResult(action=Action.RUN_TOOL, tool="c", tool_args={"apply": "yes"})
        assert assess_decision_risk(decision) == ("high", "delete empty directories")

    def test_rename_is_medium(self):
        decision = DecisionResult(action=Action.RUN_TOOL, tool="rename")
        assert assess_decision_risk(decision) == ("medium", "batch rename files")

    def test_create_function_is_medium(self):
        decision = DecisionResult(action=Action.CREATE_FUNCTION, function_description="zip a folder")
        assert assess_decision_risk(decision)[0] == "medium"

    def test_answer_is_low(self):
        assert assess_decision_risk(DecisionResult(answer="hi")) == ("low", "response only")

    def test_custom_markers(self):
        assessor = create_risk_assessor(["Purge"])

        assert assessor.plugin_risk("cache_purge")[0] == "high"
        assert assessor.plugin_risk("git_reset")[0] == "medium"


class TestShouldConfirm:
    """Tests for the confirmation policy table."""

    @pytest.mark.parametrize("policy,confirm_tools,risk,expected", [
        ("strict", False, "low", True),
        ("strict", False, "high", True),
        ("normal", False, "low", False),
        ("normal", False, "medium", False),
        ("normal", False, "high", True),
        ("normal", True, "low", True),
        ("off", False, "high", False),
        ("off", True, "low", True),
    ])
    def test_policy(self, policy, confirm_tools, risk, expected):
        gate = create_confirmation_gate(policy, confirm_tools)
        assert gate.should_confirm(risk) is expected

    def test_policy_is_normalized(self):
        assert create_confirmation_gate(" STRICT ").policy == "strict"
        assert create_confirmation_gate("").policy == "normal"

    def test_invalid_policy(self):
        with pytest.raises(ConfigError):
            create_confirmation_gate("paranoid")


class TestConfirmAction:
    """Tests for the confirmation prompts."""

    @pytest.mark.parametrize("answer,expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_high_risk_needs_explicit_yes(self, answer, expected):
        gate = create_confirmation_gate(input_func=scripted_input(answer))
        assert gate.confirm_action("high") is expected

    @pytest.mark.parametrize(
        "answer,expected", [("", True), ("y", True), ("sure", True), ("N", False), ("no", False)]
    )
    def test_other_risk_defaults_to_yes(self, answer, expected):
        gate = create_confirmation_gate(input_func=scripted_input(answer))
        assert gate.confirm_action("medium") is expected

    @pytest.mark.parametrize("risk", ["low", "high"])
    def test_end_of_input_declines(self, risk, capsys):
        gate = create_confirmation_gate(input_func=scripted_input())
        assert gate.confirm_action(risk) is False

    def test_prompt_text(self):
        reader = scripted_input("y", "y")
        gate = create_confirmation_gate(input_func=reader)

        gate.confirm_action("high")
        gate.confirm_action("low")

        assert "Confirm HIGH risk action? [y/N]: " in reader.prompts[0]
        assert "Confirm agent action? [Y/n]: " in reader.prompts[1]

    def test_ask_continue(self):
        gate = create_confirmation_gate(input_func=scripted_input("", "n"))

        assert gate.ask_continue("More? [Y/n]: ") is True
        assert gate.ask_continue("More? [Y/n]: ") is False
        assert gate.ask_continue("More? [Y/n]: ") is False
