"""Write-back of generated functions into toolkit files."""

import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..commands.executor import CommandExecutor, create_command_executor
from ..errors import ValidationFailedError
from ..utils.logging import logger
from .catalog import PluginCatalog, invalidate_cache
from .parser import FUNCTION_LINE_PATTERN, is_public_function_name, read_function_names
from .render import toolkit_group_key, toolkit_label

FUNCTIONS_INDEX_PATTERN = re.compile(r"(?m)^#\s+FUNCTIONS\s*$")
FUNCTIONS_INDEX_ENTRY = "#   "
TOOLKIT_SUFFIX = "_Toolkit.ps1"

TOOLKIT_HEADER = """\
# =============================================================================
# {title} TOOLKIT - Auto-generated toolkit (standalone)
# Safety: Review generated functions before use.
# Entry point: {prefix}_*
#
# FUNCTIONS
#   {function_name}
# =============================================================================

Set-StrictMode -Version Latest
$ErrorActionPreference = "Stop"

# -----------------------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------------------

<#
.SYNOPSIS
Ensure a command is available in PATH.
.PARAMETER Name
Command name to validate.
.EXAMPLE
_assert_command_available -Name docker
#>
function _assert_command_available {{
    param([Parameter(Mandatory = $true)][string]$Name)
    if (-not (Get-Command -Name $Name -ErrorAction SilentlyContinue)) {{
        throw "Required command '$Name' was not found in PATH."
    }}
}}

<#
.SYNOPSIS
Ensure a filesystem path exists.
.PARAMETER Path
Path to validate.
.EXAMPLE
_assert_path_exists -Path C:\\Data
#>
function _assert_path_exists {{
    param([Parameter(Mandatory = $true)][string]$Path)
    if (-not (Test-Path -LiteralPath $Path)) {{
        throw "Required path '$Path' does not exist."
    }}
}}

# -----------------------------------------------------------------------------
# Public functions
# -----------------------------------------------------------------------------

"""


@dataclass
class ToolkitSummary:
    """An existing toolkit file as presented to the builder."""
    file_path: str
    label: str
    prefix: str
    functions: List[str] = field(default_factory=list)


def derive_prefix(functions: List[str]) -> str:
    """Shared ``<prefix>_`` of a toolkit's functions.

    A two-segment prefix (``git_branch``) is used when every function shares
    it, otherwise the first segment of the first function.
    """
    if not functions:
        return ""
    first = functions[0]
    if "_" not in first:
        return first
    candidate = first.split("_", 1)[0]
    if any(not fn.startswith(candidate + "_") for fn in functions[1:]):
        return candidate

    parts = first.split("_")
    if len(parts) > 2:
        longer = "_".join(parts[:2])
        if all(fn.startswith(longer + "_") for fn in functions):
            return longer
    return candidate


def list_toolkit_summaries(catalog: PluginCatalog) -> List[ToolkitSummary]:
    try:
        files = catalog.list_function_files()
    except OSError as e:
        logger.warning(f"Could not list toolkits: {e}")
        return []
    return [
        ToolkitSummary(
            file_path=f.path,
            label=toolkit_label(toolkit_group_key(f.path)),
            prefix=derive_prefix(list(f.functions)),
            functions=list(f.functions),
        )
        for f in files
    ]


def function_name_from_code(code: str) -> str:
    for line in code.splitlines():
        match = FUNCTION_LINE_PATTERN.match(line)
        if match:
            return match.group(1)
    return ""


def append_function_to_toolkit(file_path: Path, function_code: str) -> None:
    """Append ``function_code`` to the end of an existing toolkit file."""
    text = file_path.read_text(encoding="utf-8")
    if not text.endswith("\n"):
        text += "\n"
    text += "\n" + function_code.strip() + "\n"
    file_path.write_text(text, encoding="utf-8")


def update_functions_index(file_path: Path, function_name: str) -> bool:
    """Register ``function_name`` under the toolkit's ``# FUNCTIONS`` header.

    The entry goes after the last existing ``#   name`` line. Files without
    the header are left alone.

    Returns:
        True when the index was updated
    """
    text = file_path.read_text(encoding="utf-8")
    match = FUNCTIONS_INDEX_PATTERN.search(text)
    if not match:
        return False

    insert_at = match.end()
    if insert_at < len(text) and text[insert_at] == "\n":
        insert_at += 1
    cursor = insert_at
    while cursor < len(text):
        newline = text.find("\n", cursor)
        if newline == -1:
            break
        if text[cursor:newline].startswith(FUNCTIONS_INDEX_ENTRY):
            cursor = newline + 1
            insert_at = cursor
            continue
        break

    updated = text[:insert_at] + f"{FUNCTIONS_INDEX_ENTRY}{function_name}\n" + text[insert_at:]
    file_path.write_text(updated, encoding="utf-8")
    return True


def create_new_toolkit(plugins_dir: Path, toolkit_name: str, prefix: str, function_code: str,
                       function_name: str = "") -> Path:
    """Create ``<toolkit_name>_Toolkit.ps1`` holding the header and ``function_code``.

    Raises:
        ValidationFailedError: The file already exists
    """
    plugins_dir.mkdir(parents=True, exist_ok=True)
    file_path = plugins_dir / f"{toolkit_name}{TOOLKIT_SUFFIX}"
    if file_path.exists():
        raise ValidationFailedError(f"toolkit already exists: {file_path.name}")

    header = TOOLKIT_HEADER.format(
        title=toolkit_name.replace("_", " ").upper(),
        prefix=prefix,
        function_name=function_name or function_name_from_code(function_code),
    )
    file_path.write_text(header + function_code.strip() + "\n", encoding="utf-8")
    return file_path


def validate_powershell_syntax(code: str, executor: Optional[CommandExecutor] = None) -> bool:
    """Compile ``code`` with pwsh when it is installed.

    Returns:
        True when the code was checked, False when pwsh is not available

    Raises:
        ValidationFailedError: pwsh rejected the code
    """
    pwsh = shutil.which("pwsh")
    if pwsh is None:
        logger.debug("pwsh not installed; skipping syntax check")
        return False

    executor = executor or create_command_executor(timeout=60)
    result = executor.capture(
        [pwsh, "-NoProfile", "-NonInteractive", "-Command", "[scriptblock]::Create(($input | Out-String)) | Out-Null"],
        input_text=code,
    )
    if not result.success:
        message = result.stderr.strip() or result.error_message or f"exit code {result.exit_code}"
        raise ValidationFailedError(f"PowerShell syntax error:\n{message}")
    return True


def _toolkit_name(target_file: str, prefix: str) -> str:
    stem = Path(target_file.replace("\\", "/")).name if target_file else ""
    for suffix in (TOOLKIT_SUFFIX, ".ps1"):
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    stem = re.sub(r"[^A-Za-z0-9_]", "_", stem).strip("_")
    if stem:
        return stem
    return (prefix or "Custom").capitalize()


class ToolkitWriter:
    """Places generated functions into the plugins directory."""

    def __init__(self, catalog: PluginCatalog):
        self.catalog = catalog
        self.plugins_dir = Path(catalog.plugins_dir)

    def resolve_existing(self, target_file: str) -> Optional[Path]:
        """Find an existing toolkit among the catalog's function files.

        ``target_file`` may be a full path, a path relative to the plugins
        directory or a bare file name. Files the catalog does not load are
        never returned.
        """
        if not target_file:
            return None
        known = {
            Path(summary.file_path).resolve(): Path(summary.file_path)
            for summary in list_toolkit_summaries(self.catalog)
        }
        raw = Path(target_file.replace("\\", "/")).expanduser()
        for candidate in (raw, self.plugins_dir / raw):
            match = known.get(candidate.resolve())
            if match is not None:
                return match
        wanted = raw.name.lower()
        for path in known.values():
            if path.name.lower() == wanted:
                return path
        return None

    def is_inside_plugins_dir(self, target_file: str) -> bool:
        if not target_file:
            return False
        raw = Path(target_file.replace("\\", "/")).expanduser()
        root = self.plugins_dir.resolve()
        resolved = (self.plugins_dir / raw).resolve()
        return resolved == root or root in resolved.parents

    def check_declared_name(self, function_name: str, function_code: str) -> None:
        """Reject code that does not declare ``function_name`` as a public function.

        Raises:
            ValidationFailedError: The name is private, taken or not declared
        """
        if not function_name or not is_public_function_name(function_name):
            raise ValidationFailedError(f"function name must be public: {function_name!r}")
        if function_name in self.catalog.names():
            raise ValidationFailedError(f"function already exists: {function_name}")
        declared = read_function_names(function_code)
        if function_name not in declared:
            found = ", ".join(declared) or "none"
            raise ValidationFailedError(
                f"generated code does not declare {function_name} (found: {found})"
            )

    def write(self, function_name: str, function_code: str, target_file: str,
              is_new_toolkit: bool, new_prefix: str = "") -> Path:
        """Write a generated function and invalidate the catalog.

        Nothing is written unless the name and the code pass validation.

        Raises:
            ValidationFailedError: The name is taken or the code is rejected
        """
        self.check_declared_name(function_name, function_code)
        validate_powershell_syntax(function_code)

        existing = None if is_new_toolkit else self.resolve_existing(target_file)
        if existing is None and not is_new_toolkit and target_file:
            logger.warning(f"Toolkit {target_file} is not a plugin source; creating a new toolkit")
        name_source = target_file if self.is_inside_plugins_dir(target_file) else ""
        try:
            if existing is not None:
                append_function_to_toolkit(existing, function_code)
                update_functions_index(existing, function_name)
                path = existing
                logger.builder(f"Appended {function_name} to {path.name}")
            else:
                prefix = new_prefix or function_name.split("_", 1)[0]
                path = create_new_toolkit(
                    self.plugins_dir, _toolkit_name(name_source, prefix), prefix,
                    function_code, function_name,
                )
                logger.builder(f"Created toolkit {path.name} with {function_name}")
        except OSError as e:
            raise ValidationFailedError(f"could not write {function_name}: {e}") from e
        finally:
            invalidate_cache()
        return path


def create_toolkit_writer(catalog: PluginCatalog) -> ToolkitWriter:
    """Create a toolkit writer for ``catalog``."""
    return ToolkitWriter(catalog)
