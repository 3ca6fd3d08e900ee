"""Per-platform rules for which plugin files are preferred and how they run."""

import os
from pathlib import Path
from typing import List

from ..errors import InterpreterNotFoundError, PlugmateError
from ..utils.helpers import first_available_binary, shell_looks_like_bash

SCRIPT_EXTENSIONS = (".ps1", ".cmd", ".bat", ".exe", ".sh", "", ".out")
FUNCTION_SOURCE_EXTENSIONS = (".ps1", ".psm1", ".txt")

FUNCTION_BRIDGE_RUNNER = "powershell function bridge"


def is_windows() -> bool:
    return os.name == "nt"


def extension_of(path) -> str:
    return Path(path).suffix.lower()


def script_name(file_name: str) -> str:
    """Plugin name for a script file: the file name without its extension."""
    path = Path(file_name)
    return path.stem if path.suffix else path.name


def is_supported_script(file_name: str) -> bool:
    return extension_of(file_name) in SCRIPT_EXTENSIONS


def is_function_source(file_name: str) -> bool:
    return extension_of(file_name) in FUNCTION_SOURCE_EXTENSIONS


def preferred_script_extensions() -> List[str]:
    """Extension preference used when several scripts share one name."""
    if is_windows():
        if shell_looks_like_bash():
            return [".sh", ".ps1", ".cmd", ".bat", ".exe", "", ".out"]
        return [".ps1", ".cmd", ".bat", ".exe", ".sh", "", ".out"]
    return [".sh", "", ".out", ".ps1"]


def script_score(path) -> int:
    order = preferred_script_extensions()
    ext = extension_of(path)
    return order.index(ext) if ext in order else len(order) + 1


def function_source_score(path) -> int:
    ext = extension_of(path)
    if ext in FUNCTION_SOURCE_EXTENSIONS:
        return FUNCTION_SOURCE_EXTENSIONS.index(ext)
    return len(FUNCTION_SOURCE_EXTENSIONS)


def runner_for_path(path) -> str:
    """Short description of how a script file is launched."""
    ext = extension_of(path)
    if is_windows():
        return {
            ".ps1": "powershell -File",
            ".sh": "sh",
            ".cmd": "cmd /C",
            ".bat": "cmd /C",
            ".exe": "direct",
            "": "direct",
            ".out": "direct",
        }.get(ext, "unknown")
    if ext == ".ps1":
        return "pwsh -File"
    if ext == ".sh":
        return "sh"
    return "direct"


def powershell_binary(windows_first: bool = False) -> str:
    """Name of the installed PowerShell executable.

    Raises:
        InterpreterNotFoundError: Neither pwsh nor powershell is on PATH
    """
    names = ("powershell", "pwsh") if windows_first else ("pwsh", "powershell")
    binary = first_available_binary(*names)
    if binary is None:
        raise InterpreterNotFoundError(["pwsh", "powershell"])
    return binary


def script_command(path) -> List[str]:
    """Argument vector (without plugin arguments) that runs a script file.

    Raises:
        InterpreterNotFoundError: The interpreter for the file type is missing
        PlugmateError: The file type cannot be run on this platform
    """
    path = str(path)
    ext = extension_of(path)

    if is_windows():
        if ext == ".ps1":
            return [powershell_binary(windows_first=True), "-NoProfile", "-NonInteractive", "-File", path]
        if ext == ".sh":
            shell = first_available_binary("sh", "bash")
            if shell is None:
                raise InterpreterNotFoundError(["sh", "bash"])
            return [shell, path]
        if ext in (".cmd", ".bat"):
            return ["cmd", "/C", path]
        if ext in (".exe", "", ".out"):
            return [path]
        raise PlugmateError(f"unsupported plugin type on windows: {ext}")

    if ext == ".ps1":
        return [powershell_binary(), "-File", path]
    if ext == ".sh":
        return ["sh", path]
    return [path]
