"""Registry of the built-in tools and the ``run_by_name`` dispatcher."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..constants import RISK_HIGH, RISK_LOW, RISK_MEDIUM
from ..utils.logging import logger
from . import files
from .system import collect_snapshot


@dataclass(frozen=True)
class ToolDescriptor:
    key: str
    name: str
    synopsis: str
    aliases: Tuple[str, ...] = ()
    agent_args: str = ""
    risk_level: str = RISK_LOW
    risk_note: str = ""


@dataclass
class ToolRunResult:
    """Outcome of one tool run.

    ``can_continue`` is set by paging tools when more results exist; the caller
    may re-run the tool with ``continue_params`` after asking ``continue_prompt``.
    """

    code: int = 0
    output: str = ""
    can_continue: bool = False
    continue_prompt: str = ""
    continue_params: Dict[str, str] = field(default_factory=dict)


TOOL_REGISTRY: List[ToolDescriptor] = [
    ToolDescriptor("s", "search", "Search files by name/extension", ("s",),
                   "base, ext, name, sort, limit, offset", RISK_LOW, "read/inspect operation"),
    ToolDescriptor("r", "rename", "Batch rename files with preview", ("r",),
                   "base, from, to, name, case_sensitive", RISK_MEDIUM, "batch rename files"),
    ToolDescriptor("e", "recent", "Show recent files", ("e", "rec"),
                   "base, limit, offset", RISK_LOW, "read/inspect operation"),
    ToolDescriptor("b", "backup", "Create a folder zip backup", ("b",),
                   "source, output", RISK_MEDIUM, "writes backup archive"),
    ToolDescriptor("c", "clean", "Delete empty folders", ("c",),
                   "base, apply (true for delete, otherwise preview)", RISK_LOW, "preview only"),
    ToolDescriptor("y", "system", "Show system/network snapshot", ("y", "sys", "htop"),
                   "", RISK_LOW, "read/inspect operation"),
]


def normalize_tool_name(name: str) -> str:
    """Canonical tool name for a name, key or alias; empty when unknown."""
    wanted = (name or "").strip().lower()
    if not wanted:
        return ""
    for tool in TOOL_REGISTRY:
        if wanted == tool.name or wanted == tool.key or wanted in tool.aliases:
            return tool.name
    return ""


def is_known_tool(name: str) -> bool:
    return normalize_tool_name(name) != ""


def get_tool(name: str) -> Optional[ToolDescriptor]:
    canonical = normalize_tool_name(name)
    for tool in TOOL_REGISTRY:
        if tool.name == canonical:
            return tool
    return None


def build_agent_catalog() -> str:
    """One line per tool as shown to the planner."""
    lines = []
    for tool in TOOL_REGISTRY:
        args = f"tool_args: {tool.agent_args}" if tool.agent_args else "(no args needed)"
        lines.append(f"- {tool.name}: {tool.synopsis} | {args}")
    return "\n".join(lines)


def agent_tool_rules() -> List[str]:
    """Per-tool argument hints appended to the planner rules."""
    return [
        f"- For {tool.name} tool use tool_args keys: {tool.agent_args}."
        for tool in TOOL_REGISTRY
        if tool.agent_args
    ]


def tool_risk(name: str, args: Optional[Dict[str, str]] = None) -> Tuple[str, str]:
    """Static ``(risk, reason)`` for a tool invocation."""
    tool = get_tool(name)
    if tool is None:
        return RISK_LOW, "read/inspect operation"
    if tool.name == "clean" and files.is_truthy((args or {}).get("apply")):
        return RISK_HIGH, "delete empty directories"
    return tool.risk_level, tool.risk_note


InputFunc = Callable[[str], str]


def _ask(input_func: InputFunc, label: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    try:
        answer = input_func(f"{label}{suffix}: ").strip()
    except EOFError:
        return default
    return answer or default


def _paged(items, params: Dict[str, str], noun: str) -> ToolRunResult:
    offset, limit = files.parse_page(params)
    lines, shown = files.page_lines(items, offset, limit)
    result = ToolRunResult(output="\n".join(lines))
    next_offset = offset + shown
    if shown and next_offset < len(items):
        result.can_continue = True
        result.continue_prompt = f"Show next {min(limit, len(items) - next_offset)} {noun}? [Y/n]: "
        result.continue_params = dict(params, offset=str(next_offset), limit=str(limit))
    return result


def _run_search(base_dir: Path, params: Dict[str, str], _input: InputFunc) -> ToolRunResult:
    base = files.resolve_path(params.get("base"), base_dir)
    items = files.search_files(
        base,
        name=params.get("name", ""),
        ext=params.get("ext", ""),
        sort_by=(params.get("sort") or "name").strip().lower(),
    )
    return _paged(items, params, "search results")


def _run_recent(base_dir: Path, params: Dict[str, str], _input: InputFunc) -> ToolRunResult:
    base = files.resolve_path(params.get("base"), base_dir)
    return _paged(files.recent_files(base), params, "recent files")


def _run_rename(base_dir: Path, params: Dict[str, str], input_func: InputFunc) -> ToolRunResult:
    base = files.resolve_path(params.get("base"), base_dir)
    old = (params.get("from") or "").strip() or _ask(input_func, "Replace from")
    plan = files.build_rename_plan(
        base,
        old,
        params.get("to", ""),
        name_part=(params.get("name") or "").strip(),
        case_sensitive=files.is_truthy(params.get("case_sensitive")),
    )
    if not plan:
        print("No files to rename.")
        return ToolRunResult(output="No files to rename.")

    lines = ["Preview:"] + [f"{src} -> {dst}" for src, dst in plan]
    print("\n".join(lines))
    if not files.is_truthy(params.get("apply")):
        if _ask(input_func, "Apply these renames? [y/N]", "N").lower() != "y":
            lines.append("Canceled.")
            print(lines[-1])
            return ToolRunResult(output="\n".join(lines))
    files.apply_rename_plan(plan)
    lines.append(f"Renamed {len(plan)} file(s).")
    print(lines[-1])
    return ToolRunResult(output="\n".join(lines))


def _run_clean(base_dir: Path, params: Dict[str, str], _input: InputFunc) -> ToolRunResult:
    base = files.resolve_path(params.get("base"), base_dir)
    empty = files.find_empty_dirs(base)
    if not empty:
        return ToolRunResult(output="No empty folders found.")
    if not files.is_truthy(params.get("apply")):
        lines = [f"Found {len(empty)} empty folder(s) (preview, pass apply=true to delete):"]
        lines.extend(str(path) for path in empty)
        return ToolRunResult(output="\n".join(lines))

    removed = []
    for path in empty:
        path.rmdir()
        removed.append(str(path))
    return ToolRunResult(output="\n".join([f"Deleted {len(removed)} empty folder(s):"] + removed))


def _run_backup(base_dir: Path, params: Dict[str, str], _input: InputFunc) -> ToolRunResult:
    source = files.resolve_path(params.get("source"), base_dir)
    output = files.resolve_path(params.get("output"), source.parent)
    archive = files.zip_directory(source, output)
    return ToolRunResult(output=f"Backup created: {archive}")


def _run_system(_base_dir: Path, _params: Dict[str, str], _input: InputFunc) -> ToolRunResult:
    return ToolRunResult(output="\n".join(collect_snapshot()))


# Runners that echo their own output while prompting
_SELF_PRINTING = {"rename"}

_RUNNERS = {
    "search": _run_search,
    "recent": _run_recent,
    "rename": _run_rename,
    "clean": _run_clean,
    "backup": _run_backup,
    "system": _run_system,
}


def run_by_name(base_dir, name: str, params: Optional[Dict[str, str]] = None,
                input_func: InputFunc = input) -> ToolRunResult:
    """Run a built-in tool with planner supplied parameters.

    Args:
        base_dir: Directory used when a path parameter is empty.
        name: Tool name, key or alias.
        params: String parameters from ``tool_args``.
        input_func: Line reader used for interactive follow-up questions.

    Returns:
        ToolRunResult with exit code and captured output (also printed).
    """
    canonical = normalize_tool_name(name)
    if not canonical:
        message = f"Unknown tool: {name}"
        logger.error(message)
        return ToolRunResult(code=1, output=message)

    logger.tool(f"Running {canonical} with {params or {}}")
    try:
        result = _RUNNERS[canonical](Path(base_dir), dict(params or {}), input_func)
    except (OSError, ValueError) as exc:
        message = f"Error: {exc}"
        print(message)
        return ToolRunResult(code=1, output=message)

    if result.output and canonical not in _SELF_PRINTING:
        print(result.output)
    return result
