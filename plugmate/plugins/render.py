"""Text rendering of the plugin catalog for planner prompts."""

import re
from pathlib import PurePosixPath
from typing import Dict, List

from .catalog import PluginCatalog
from .parser import ParameterDetail

EMPTY_CATALOG = "(none)"

_LEADING_ORDER_PREFIX = re.compile(r"^[0-9]_")


def toolkit_group_key(file_path: str) -> str:
    """File stem used to group catalog entries, e.g. ``1_Git_Toolkit``."""
    return PurePosixPath(file_path.replace("\\", "/")).stem


def toolkit_label(group_key: str) -> str:
    """Readable label for a group key: ``1_Git_Toolkit`` becomes ``Git``."""
    name = _LEADING_ORDER_PREFIX.sub("", group_key, count=1)
    if name.endswith("_Toolkit"):
        name = name[: -len("_Toolkit")]
    return name.replace("_", " ")


def format_param_details(details: List[ParameterDetail]) -> str:
    parts = []
    for detail in details:
        text = detail.name
        if detail.is_switch:
            text += " [switch]"
        elif detail.type:
            text += f" [{detail.type}]"
        if detail.mandatory:
            text += " (required)"
        if detail.allowed_values:
            text += " values=" + "|".join(detail.allowed_values)
        if detail.default:
            text += f" default={detail.default}"
        parts.append(text)
    return "; ".join(parts)


def render_catalog(catalog: PluginCatalog) -> str:
    """Render every plugin as ``- name: synopsis | params: ...`` under its file label.

    Listing failures render as an empty catalog; the planner can still answer
    or use built-in tools.
    """
    try:
        entries = catalog.list_entries(include_functions=True)
    except OSError:
        return EMPTY_CATALOG
    if not entries:
        return EMPTY_CATALOG

    groups: Dict[str, List[str]] = {}
    for entry in entries:
        info = catalog.get_info(entry.name)
        line = f"- {entry.name}"
        if info.synopsis.strip():
            line += f": {info.synopsis}"
        if info.parameter_details:
            line += " | params: " + format_param_details(info.parameter_details)
        elif info.parameters:
            line += " | params: " + "; ".join(info.parameters)
        groups.setdefault(toolkit_group_key(entry.path), []).append(line)

    out = []
    for key in sorted(groups):
        out.append(f"\n[{toolkit_label(key)}]")
        out.extend(groups[key])
    return "\n".join(out)
