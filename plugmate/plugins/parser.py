"""Metadata extraction from PowerShell plugin sources.

Plugins document themselves with a comment-based help block placed directly
above the ``function`` line and declare their arguments in a ``param(...)``
block right after it::

    <#
    .SYNOPSIS
    Resets a git branch.
    .PARAMETER Branch
    Branch to reset.
    #>
    function git_reset {
        param(
            [Parameter(Mandatory=$true)]
            [ValidateSet('main', 'dev')]
            [string]$Branch,
            [switch]$Force
        )
    }

Everything here is best effort: anything that cannot be understood is left
out rather than raised.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

FUNCTION_LINE_PATTERN = re.compile(r"(?i)^\s*function\s+([a-z0-9_-]+)\b")
HELP_TAG_PATTERN = re.compile(
    r"(?i)^\.(synopsis|description|example|parameter)\b(?:\s+([a-z0-9_-]+))?\s*$"
)

HELP_BLOCK_OPEN = "<#"
HELP_BLOCK_CLOSE = "#>"

# Lines after the function header searched for the start of param(...)
PARAM_SEARCH_WINDOW = 10

PARAM_TOKEN_PATTERN = re.compile(
    r"(?P<attr>\[[^\[\]]*(?:\[[^\[\]]*\][^\[\]]*)*\])"
    r"|\$(?P<var>\w+)"
    r"(?:\s*=\s*(?P<default>'[^']*'|\"[^\"]*\"|@?\([^)]*\)|[^,\s)]+))?"
)
MANDATORY_PATTERN = re.compile(r"(?i)\bmandatory\b(?!\s*=\s*\$false)")


@dataclass
class ParameterDetail:
    """A single declared parameter of a plugin function."""
    name: str
    type: str = ""
    mandatory: bool = False
    is_switch: bool = False
    allowed_values: List[str] = field(default_factory=list)
    default: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "type": self.type,
            "mandatory": self.mandatory,
            "switch": self.is_switch,
            "allowed_values": list(self.allowed_values),
            "default": self.default,
        }


@dataclass
class FunctionHelp:
    """Comment-based help attached to a function."""
    synopsis: str = ""
    description: str = ""
    parameters: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)


def is_public_function_name(name: str) -> bool:
    """Functions starting with an underscore are private helpers."""
    return not name.startswith("_")


def read_function_names(text: str) -> List[str]:
    """Return the public function names declared in ``text``, in file order."""
    names: List[str] = []
    seen = set()
    for line in text.splitlines():
        match = FUNCTION_LINE_PATTERN.match(line)
        if not match:
            continue
        name = match.group(1).strip()
        if not name or not is_public_function_name(name) or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names


def find_function_line(lines: List[str], function_name: str) -> int:
    """Index of the line declaring ``function_name`` (case-insensitive), or -1."""
    wanted = function_name.lower()
    for index, line in enumerate(lines):
        match = FUNCTION_LINE_PATTERN.match(line)
        if match and match.group(1).strip().lower() == wanted:
            return index
    return -1


def parse_function_help(text: str, function_name: str) -> FunctionHelp:
    """Parse the help block directly above ``function_name``.

    Blank lines between the closing ``#>`` and the function line are allowed;
    any other line in between means the function has no help.

    Args:
        text: Full source text of the plugin file
        function_name: Function to look up

    Returns:
        The parsed help, empty when the function or its help block is missing
    """
    lines = text.splitlines()
    fn_index = find_function_line(lines, function_name)
    if fn_index == -1:
        return FunctionHelp()

    end = fn_index - 1
    while end >= 0 and not lines[end].strip():
        end -= 1
    if end < 0 or lines[end].strip() != HELP_BLOCK_CLOSE:
        return FunctionHelp()

    start = end - 1
    while start >= 0 and lines[start].strip() != HELP_BLOCK_OPEN:
        start -= 1
    if start < 0:
        return FunctionHelp()

    return parse_help_block(lines[start + 1:end])


def parse_help_block(lines: List[str]) -> FunctionHelp:
    """Parse the inside of a ``<# ... #>`` block into a FunctionHelp."""
    help_info = FunctionHelp()
    mode = ""
    param_name = ""
    param_text: Dict[str, List[str]] = {}

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        tag = HELP_TAG_PATTERN.match(line)
        if tag:
            mode = tag.group(1).lower()
            param_name = (tag.group(2) or "").strip() if mode == "parameter" else ""
            if param_name:
                param_text.setdefault(param_name, [])
            continue

        if mode == "synopsis":
            help_info.synopsis = f"{help_info.synopsis} {line}".strip()
        elif mode == "description":
            help_info.description = f"{help_info.description} {line}".strip()
        elif mode == "example":
            help_info.examples.append(line)
        elif mode == "parameter" and param_name:
            param_text[param_name].append(line)

    for name in sorted(param_text, key=str.lower):
        joined = " ".join(param_text[name]).strip()
        help_info.parameters.append(f"{name}: {joined}" if joined else name)

    return help_info


def _param_block_text(lines: List[str], fn_index: int) -> Optional[str]:
    """Return the text between the parentheses of the function's param block.

    An unterminated block is cut at its last top-level boundary: a comma or
    the close of a nested group such as ``[Parameter(...)]``.
    """
    start_line = -1
    for index in range(fn_index + 1, min(len(lines), fn_index + PARAM_SEARCH_WINDOW)):
        trimmed = lines[index].strip()
        if trimmed.lower().startswith("param") and "(" in trimmed:
            start_line = index
            break
    if start_line == -1:
        return None

    kept = [line for line in lines[start_line:] if not line.strip().startswith("#")]
    body = "\n".join(kept)
    open_at = body.index("(")

    depth = 0
    last_boundary = open_at + 1
    for position in range(open_at, len(body)):
        char = body[position]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return body[open_at + 1:position]
            if depth == 1:
                last_boundary = position + 1
        elif char == "," and depth == 1:
            last_boundary = position + 1
    return body[open_at + 1:last_boundary]


def _split_attribute(attribute: str) -> Tuple[str, str]:
    """Split ``[Name(args)]`` into ``("name", "args")``; ``[type]`` gives no args."""
    inner = attribute[1:-1].strip()
    if "(" not in inner:
        return inner, ""
    name, _, rest = inner.partition("(")
    return name.strip().lower(), rest.rsplit(")", 1)[0]


def _strip_quotes(value: str) -> str:
    return value.strip().strip("\"'")


def parse_param_block(text: str, function_name: str) -> List[ParameterDetail]:
    """Parse parameter declarations of ``function_name``.

    Attributes seen before a ``$Variable`` (mandatory markers, validated value
    sets, the type) are attached to that variable and then reset.

    Args:
        text: Full source text of the plugin file
        function_name: Function to look up

    Returns:
        Declared parameters in declaration order; empty when there is no
        param block
    """
    lines = text.splitlines()
    fn_index = find_function_line(lines, function_name)
    if fn_index == -1:
        return []

    block = _param_block_text(lines, fn_index)
    if not block:
        return []

    params: List[ParameterDetail] = []
    pending_mandatory = False
    pending_values: List[str] = []
    pending_type = ""

    for token in PARAM_TOKEN_PATTERN.finditer(block):
        attribute = token.group("attr")
        if attribute:
            name, args = _split_attribute(attribute)
            if attribute[1:-1].strip() and "(" not in attribute:
                pending_type = name
            elif name == "parameter" and MANDATORY_PATTERN.search(args):
                pending_mandatory = True
            elif name == "validateset":
                pending_values.extend(
                    value for value in (_strip_quotes(v) for v in args.split(",")) if value
                )
            continue

        detail = ParameterDetail(
            name=token.group("var"),
            type=pending_type,
            mandatory=pending_mandatory,
            is_switch=pending_type.lower() == "switch",
            allowed_values=pending_values,
            default=_strip_quotes(token.group("default") or ""),
        )
        params.append(detail)
        pending_mandatory = False
        pending_values = []
        pending_type = ""

    return params


def missing_mandatory_parameters(details: List[ParameterDetail], provided: Dict[str, str]) -> List[str]:
    """Names of mandatory, non-switch parameters absent from ``provided``.

    Keys of ``provided`` are compared case-insensitively and may carry a
    leading ``-``.
    """
    given = {key.lstrip("-").lower() for key, value in provided.items() if str(value).strip()}
    return [
        d.name for d in details
        if d.mandatory and not d.is_switch and d.name.lower() not in given
    ]
