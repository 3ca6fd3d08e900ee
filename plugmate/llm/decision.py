"""Structured planner and builder outputs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class Action(str, Enum):
    """The four things the planner may decide to do."""
    ANSWER = "answer"
    RUN_PLUGIN = "run_plugin"
    RUN_TOOL = "run_tool"
    CREATE_FUNCTION = "create_function"

    @classmethod
    def normalize(cls, raw: Any) -> "Action":
        """Map any action string to a member; unknown or empty becomes ANSWER."""
        value = str(raw or "").strip().lower()
        for member in cls:
            if member.value == value:
                return member
        return cls.ANSWER


@dataclass
class DecisionResult:
    """One normalized planner decision."""
    action: Action = Action.ANSWER
    answer: str = ""
    plugin: str = ""
    plugin_args: Dict[str, str] = field(default_factory=dict)
    tool: str = ""
    tool_args: Dict[str, str] = field(default_factory=dict)
    args: List[str] = field(default_factory=list)
    reason: str = ""
    function_description: str = ""
    provider: str = ""
    model: str = ""

    def __post_init__(self):
        self.action = Action.normalize(self.action.value if isinstance(self.action, Action) else self.action)


@dataclass
class BuilderResult:
    """Generated function returned by the builder model."""
    function_name: str = ""
    function_code: str = ""
    target_file: str = ""
    is_new_toolkit: bool = False
    new_prefix: str = ""
    explanation: str = ""
