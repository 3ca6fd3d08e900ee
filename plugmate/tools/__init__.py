"""Built-in file and system tools the planner can call."""

from .registry import (
    ToolDescriptor,
    ToolRunResult,
    TOOL_REGISTRY,
    normalize_tool_name,
    is_known_tool,
    get_tool,
    build_agent_catalog,
    agent_tool_rules,
    tool_risk,
    run_by_name,
)

__all__ = [
    "ToolDescriptor",
    "ToolRunResult",
    "TOOL_REGISTRY",
    "normalize_tool_name",
    "is_known_tool",
    "get_tool",
    "build_agent_catalog",
    "agent_tool_rules",
    "tool_risk",
    "run_by_name",
]
