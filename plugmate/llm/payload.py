"""Prompt construction for the planner and builder calls."""

from typing import List, Sequence

from ..constants import MAX_PREVIOUS_PROMPTS
from ..plugins.render import EMPTY_CATALOG
from ..plugins.writer import ToolkitSummary

DECISION_SCHEMAS = [
    '{"action":"answer","answer":"text"}',
    '{"action":"run_plugin","plugin":"name","plugin_args":{"ParamName":"value","SwitchParam":"true"},"reason":"why","answer":"optional text"}',
    '{"action":"run_tool","tool":"name","tool_args":{"key":"value"},"reason":"why","answer":"optional text"}',
    '{"action":"create_function","function_description":"detailed description of what the function should do, its inputs and outputs","reason":"why no existing plugin fits"}',
]

REPAIR_SCHEMAS = [
    '{"action":"answer","answer":"text"}',
    '{"action":"run_plugin","plugin":"name","plugin_args":{"ParamName":"value"},"reason":"why","answer":"optional text"}',
    '{"action":"run_tool","tool":"name","tool_args":{"key":"value"},"reason":"why","answer":"optional text"}',
    '{"action":"create_function","function_description":"description","reason":"why"}',
]

PLUGIN_ARGUMENT_RULES = [
    "Plugin argument rules:",
    "- Use plugin_args (object) for named PowerShell parameters, NOT the args array.",
    '- Keys are parameter names WITHOUT the leading dash (e.g. "Host" not "-Host").',
    '- For switch parameters (flags like -Force, -Confirm), set the value to "true".',
    "- If a mandatory parameter is missing from the user request, do NOT guess.",
    "  Instead return action=answer and ask the user to provide the missing value.",
    "- Only include parameters the user explicitly mentioned or that have obvious defaults.",
]

GENERAL_RULES = [
    "General rules:",
    "- action must be answer, run_plugin, run_tool, or create_function.",
    "- Do not invent plugin or tool names; use only the catalog above.",
    "- If the user request requires an operation that no existing plugin or tool can handle, return action=create_function.",
    "- Only use create_function for tasks that genuinely need a new automation capability, not for general knowledge questions.",
    "- If a plugin requires confirmation or is destructive, mention it in the answer.",
]

TOOLKIT_CONVENTIONS = """PowerShell Toolkit Conventions (MUST follow strictly):

NAMING:
- Public functions: <prefix>_<action>, all lowercase (e.g. excel_sheets, pdf_pages)
- The prefix must be short, unique, and domain-descriptive
- Parameter names MUST use PascalCase (e.g. $FilePath, $SheetName, NOT $file_path)

REQUIRED FUNCTION STRUCTURE (every function MUST follow this exact pattern):

<#
.SYNOPSIS
One-line summary of what the function does.
.DESCRIPTION
More detail when the synopsis alone is not enough.
.PARAMETER FilePath
Description of this parameter.
.EXAMPLE
prefix_action -FilePath "C:\\data\\file.xlsx"
#>
function prefix_action {
    param(
        [Parameter(Mandatory = $true)]
        [string]$FilePath
    )

    _assert_path_exists -Path $FilePath

    # ... function body ...

    return [pscustomobject]@{
        Result = $value
    }
}

CRITICAL RULES:
- Parameters MUST be inside a param() block
- Do NOT place [Parameter()] attributes outside param()
- Do NOT use trailing commas after the last parameter in param()
- Do NOT use Write-Host; return values directly
- Use throw for errors
- Use Test-Path -LiteralPath (not -Path)
- Place $null on the left of comparisons: $null -eq $x
- Return [pscustomobject]@{ ... } for structured output

GUARD HELPERS (the toolkit boilerplate already provides these):
- _assert_command_available -Name <tool>
- _assert_path_exists -Path <path>
You can CALL these helpers in your function. Do NOT redefine them."""

BUILDER_INSTRUCTIONS = [
    "INSTRUCTIONS:",
    "1. Decide if this function fits in an existing toolkit or needs a new one.",
    "2. If it fits an existing toolkit, set target_file to that toolkit's file path and is_new_toolkit=false.",
    "3. If a new toolkit is needed, choose a short unique prefix and set is_new_toolkit=true.",
    "   For new toolkits, set target_file to the suggested file name (e.g. Excel_Toolkit.ps1).",
    "4. Generate ONLY the function code (with help block above it).",
    "   Do NOT include toolkit boilerplate (headers, Set-StrictMode, $ErrorActionPreference, guard helpers).",
    "   The boilerplate is added automatically. You only write the function(s).",
    "5. Do NOT define _assert_command_available or _assert_path_exists; they already exist.",
    "   You may CALL them inside your function body.",
    "6. The function MUST return [pscustomobject] for structured output.",
    "7. Parameters MUST be inside a param() block. NEVER place [Parameter()] outside param().",
    "8. Parameter names MUST be PascalCase (e.g. $FilePath, not $file_path).",
    "9. Do NOT put a trailing comma after the last parameter in param().",
]

BUILDER_SCHEMA = (
    '{"function_name":"prefix_action","function_code":"<complete PowerShell code>",'
    '"target_file":"path","is_new_toolkit":false,"new_prefix":"","explanation":"brief explanation"}'
)

NEXT_STEP_INSTRUCTION = (
    "Decide the next best step. If the task is complete, return action=answer with the final response."
)


class PromptBuilder:
    """Builds the prompts sent to the LLM."""

    def decision_prompt(self, user_prompt: str, plugin_catalog: str, tool_catalog: str,
                        tool_rules: Sequence[str] = (), env_context: str = "") -> str:
        """Prompt asking the planner for exactly one JSON decision.

        Args:
            user_prompt: The request, possibly wrapped by ``planner_request``
            plugin_catalog: Rendered plugin catalog
            tool_catalog: Rendered built-in tool catalog
            tool_rules: Extra per-tool argument rules
            env_context: Rendered environment description (optional)

        Returns:
            The complete prompt text
        """
        parts = [
            "You are an execution planner for a CLI assistant.",
            "You can either answer directly, run a plugin (PowerShell function), run a built-in tool, "
            "or propose creating a new function.",
            "",
            "Available plugins (PowerShell functions):",
            plugin_catalog.strip() or EMPTY_CATALOG,
            "",
            "Available tools:",
            tool_catalog.strip() or EMPTY_CATALOG,
            "",
            "Return ONLY valid JSON. Use one of these schemas:",
            *DECISION_SCHEMAS,
            "",
            *PLUGIN_ARGUMENT_RULES,
            "",
            *GENERAL_RULES,
            *tool_rules,
        ]
        if env_context.strip():
            parts.extend(["", "Environment context:", env_context.strip()])
        parts.extend(["", "User request:", user_prompt.strip()])
        return "\n".join(parts)

    def repair_prompt(self, raw_text: str) -> str:
        """Prompt asking the model to turn its previous answer into strict JSON."""
        return "\n".join([
            "Convert the following text to valid JSON only.",
            "Do not add markdown fences.",
            "Use exactly one of these schemas:",
            *REPAIR_SCHEMAS,
            "",
            "Text:",
            raw_text.strip(),
        ])

    def planner_request(self, original: str, history_lines: Sequence[str],
                        previous_prompts: Sequence[str] = ()) -> str:
        """Wrap the original request with session context for the next planning step.

        The bare request is returned when there is no history and no earlier
        prompt. Only the last few earlier prompts are included.
        """
        base = original.strip()
        previous = [p.strip() for p in list(previous_prompts)[-MAX_PREVIOUS_PROMPTS:] if p.strip()]
        if not history_lines and not previous:
            return base

        lines = ["Original user request:", base]
        if previous:
            lines.extend(["", "Previous prompts in this interactive session:"])
            lines.extend(f"- prev {i}: {p}" for i, p in enumerate(previous, 1))
        if history_lines:
            lines.extend(["", "Actions already executed in this session:"])
            lines.extend(history_lines)
        lines.extend(["", NEXT_STEP_INSTRUCTION])
        return "\n".join(lines)

    def builder_prompt(self, function_description: str, user_request: str,
                       toolkits: List[ToolkitSummary]) -> str:
        """Prompt asking the builder for one new PowerShell function as JSON."""
        toolkit_lines = [
            f"- File: {tk.file_path} | Prefix: {tk.prefix}_ | Functions: {', '.join(tk.functions)}"
            for tk in toolkits
        ]
        reserved = ", ".join(f"{tk.prefix}_*" for tk in toolkits if tk.prefix)
        return "\n".join([
            "You are a PowerShell toolkit builder for a CLI assistant.",
            "Your job is to generate a PowerShell function that follows strict conventions.",
            "",
            TOOLKIT_CONVENTIONS,
            "",
            "EXISTING TOOLKITS:",
            "\n".join(toolkit_lines) if toolkit_lines else "(none)",
            "",
            "RESERVED PREFIXES (do NOT reuse):",
            reserved or "(none)",
            "",
            "USER REQUEST:",
            user_request.strip(),
            "",
            "FUNCTION NEEDED:",
            function_description.strip(),
            "",
            *BUILDER_INSTRUCTIONS,
            "",
            "Return ONLY valid JSON with this schema:",
            BUILDER_SCHEMA,
            "",
            "IMPORTANT: In function_code, use \\n for newlines. The code must be syntactically valid PowerShell.",
        ])


def create_prompt_builder() -> PromptBuilder:
    """Create a prompt builder."""
    return PromptBuilder()
