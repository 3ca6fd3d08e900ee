"""Core planning, session and application logic for plugmate."""

from .application import PlugMate, create_application
from .builder import BuilderAgent, BuiltFunction, create_builder_agent
from .decision_cache import DecisionCache, create_decision_cache, decision_cache_key
from .output import JSONWriter, OutputWriter, StepRecord, TTYWriter, create_output_writer
from .planner import Planner, create_planner
from .risk import RiskAssessor, assess_decision_risk, create_risk_assessor
from .session import ActionRecord, AskSession, create_ask_session, decision_signature, plugin_args_to_ps

__all__ = [
    "PlugMate",
    "create_application",
    "BuilderAgent",
    "BuiltFunction",
    "create_builder_agent",
    "DecisionCache",
    "create_decision_cache",
    "decision_cache_key",
    "JSONWriter",
    "OutputWriter",
    "StepRecord",
    "TTYWriter",
    "create_output_writer",
    "Planner",
    "create_planner",
    "RiskAssessor",
    "assess_decision_risk",
    "create_risk_assessor",
    "ActionRecord",
    "AskSession",
    "create_ask_session",
    "decision_signature",
    "plugin_args_to_ps",
]
