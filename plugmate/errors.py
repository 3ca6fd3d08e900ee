"""Exception types raised across plugmate."""

import re
from typing import List, Optional, Sequence


class PlugmateError(Exception):
    """Base class for all plugmate errors."""


class ConfigError(PlugmateError):
    """A configuration value is invalid."""


class PluginNotFoundError(PlugmateError):
    """Neither a script nor a declared function resolves to the requested name."""

    def __init__(self, name: str, suggestions: Optional[Sequence[str]] = None):
        self.name = name
        self.suggestions: List[str] = list(suggestions or [])
        super().__init__(f"plugin not found: {name}")

    def hint(self) -> str:
        """Human readable "did you mean" line, empty when there is no suggestion."""
        if not self.suggestions:
            return ""
        return "Did you mean: " + ", ".join(self.suggestions) + "?"


class InterpreterNotFoundError(PlugmateError):
    """The interpreter needed to run a plugin is not installed."""

    def __init__(self, names: Sequence[str]):
        self.names = list(names)
        super().__init__(f"{'/'.join(self.names)} executable not found")


class ExecutionFailedError(PlugmateError):
    """A plugin subprocess exited with a non-zero code.

    ``output`` holds everything the process wrote to stdout and stderr so
    callers can look for known failure messages.
    """

    def __init__(self, message: str, output: str = "", exit_code: Optional[int] = None):
        self.output = output
        self.exit_code = exit_code
        super().__init__(message)


class ProviderUnavailableError(PlugmateError):
    """The LLM provider could not be reached."""


class ProviderError(PlugmateError):
    """The LLM provider answered with an error or an unusable body."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class MalformedResponseError(PlugmateError):
    """Model output is not a JSON object of the expected shape."""


class ValidationFailedError(PlugmateError):
    """Generated plugin code was rejected before anything was written."""


MISSING_PATH_PATTERN = re.compile(r"(?i)required path '([^']+)' does not exist")


def error_output(exc: BaseException) -> str:
    """Return the captured subprocess output attached to ``exc``, if any."""
    if isinstance(exc, ExecutionFailedError):
        return (exc.output or "").strip()
    return ""


def missing_path_hint(exc: BaseException) -> Optional[str]:
    """Return the path named by a "required path does not exist" failure."""
    combined = f"{exc}\n{error_output(exc)}".strip()
    match = MISSING_PATH_PATTERN.search(combined)
    return match.group(1) if match else None
