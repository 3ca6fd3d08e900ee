"""LLM response parsing utilities for plugmate."""

import json
import re
from typing import Any, Dict, List

from ..errors import MalformedResponseError
from .decision import Action, BuilderResult, DecisionResult

JSON_BLOCK_PATTERN = re.compile(r"(?s)\{.*\}")

_NULL_STRINGS = ("null", "<nil>")


def extract_json_object(text: str) -> str:
    """Return the JSON object text inside a model response.

    Text that starts with ``{`` is used as is; otherwise the outermost
    ``{...}`` span is taken, which strips markdown fences and chatter.

    Raises:
        MalformedResponseError: Empty text, or no braces at all
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise MalformedResponseError("empty response")
    if trimmed.startswith("{"):
        return trimmed
    match = JSON_BLOCK_PATTERN.search(trimmed)
    if not match:
        raise MalformedResponseError("no json object found")
    return match.group(0)


def _load_object(payload: str) -> Dict[str, Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"invalid json: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError("json value is not an object")
    return data


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def sanitize_args(raw: Any) -> Dict[str, str]:
    """Stringify an argument object, dropping empty and null-like values."""
    if not isinstance(raw, dict):
        return {}
    out: Dict[str, str] = {}
    for key, value in raw.items():
        name = str(key).strip()
        if not name or value is None:
            continue
        text = _scalar_text(value)
        if not text or text.lower() in _NULL_STRINGS:
            continue
        out[name] = text
    return out


def _string_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [_scalar_text(item) for item in raw if item is not None]


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _scalar_text(value).lower() in ("1", "true", "yes", "y")


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else _scalar_text(value)


def parse_decision_json(text: str) -> DecisionResult:
    """Parse a planner response into a normalized DecisionResult.

    Raises:
        MalformedResponseError: The text holds no usable JSON object
    """
    data = _load_object(extract_json_object(text))
    return DecisionResult(
        action=Action.normalize(data.get("action")),
        answer=_text(data, "answer"),
        plugin=_text(data, "plugin"),
        plugin_args=sanitize_args(data.get("plugin_args")),
        tool=_text(data, "tool"),
        tool_args=sanitize_args(data.get("tool_args")),
        args=_string_list(data.get("args")),
        reason=_text(data, "reason"),
        function_description=_text(data, "function_description"),
    )


def parse_builder_json(text: str) -> BuilderResult:
    """Parse the builder response; literal ``\\n`` in the code become newlines.

    Raises:
        MalformedResponseError: No JSON object, or an empty name or code
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise MalformedResponseError("empty builder response")
    match = JSON_BLOCK_PATTERN.search(trimmed)
    if not match:
        raise MalformedResponseError("no json object found in builder response")
    data = _load_object(match.group(0))
    result = BuilderResult(
        function_name=_text(data, "function_name"),
        function_code=str(data.get("function_code") or "").replace("\\n", "\n"),
        target_file=_text(data, "target_file"),
        is_new_toolkit=_truthy(data.get("is_new_toolkit")),
        new_prefix=_text(data, "new_prefix"),
        explanation=_text(data, "explanation"),
    )
    if not result.function_name:
        raise MalformedResponseError("builder returned empty function name")
    if not result.function_code.strip():
        raise MalformedResponseError("builder returned empty function code")
    return result
