"""Risk classification for planner decisions."""

from typing import Tuple

from ..constants import DESTRUCTIVE_PLUGIN_MARKERS, RISK_HIGH, RISK_LOW, RISK_MEDIUM
from ..llm.decision import Action, DecisionResult
from ..tools import tool_risk


class RiskAssessor:
    """Static heuristics mapping a decision to a ``(risk, reason)`` pair."""

    def __init__(self, destructive_markers=None):
        self.destructive_markers = [
            marker.lower() for marker in (destructive_markers or DESTRUCTIVE_PLUGIN_MARKERS)
        ]

    def plugin_risk(self, plugin_name: str) -> Tuple[str, str]:
        """High when the name carries a destructive verb, otherwise medium."""
        lowered = (plugin_name or "").lower()
        if any(marker in lowered for marker in self.destructive_markers):
            return RISK_HIGH, "plugin may perform destructive operations"
        return RISK_MEDIUM, "external plugin execution"

    def assess(self, decision: DecisionResult) -> Tuple[str, str]:
        """Classify ``decision``.

        Args:
            decision: Normalized planner decision.

        Returns:
            Tuple of (risk level, short reason)
        """
        if decision.action == Action.RUN_TOOL:
            return tool_risk(decision.tool, decision.tool_args)
        if decision.action == Action.RUN_PLUGIN:
            return self.plugin_risk(decision.plugin)
        if decision.action == Action.CREATE_FUNCTION:
            return RISK_MEDIUM, "writes a new plugin function"
        return RISK_LOW, "response only"


_default_assessor = RiskAssessor()


def assess_decision_risk(decision: DecisionResult) -> Tuple[str, str]:
    """Classify ``decision`` with the default destructive markers."""
    return _default_assessor.assess(decision)


def create_risk_assessor(destructive_markers=None) -> RiskAssessor:
    """Create a risk assessor instance."""
    return RiskAssessor(destructive_markers)
