"""Helper utility functions for plugmate."""

import os
import platform
import shutil
from pathlib import Path
from typing import Dict, Optional

from ..utils.logging import logger


def first_available_binary(*names: str) -> Optional[str]:
    """Return the first of ``names`` found on PATH, or None."""
    for name in names:
        if shutil.which(name):
            return name
    return None


def check_dependencies() -> None:
    """
    Checks for the external interpreters plugins are dispatched to.
    Missing interpreters only matter when a plugin of that kind is run.
    """
    missing = []
    if first_available_binary("pwsh", "powershell") is None:
        missing.append("pwsh/powershell")
    if os.name != "nt" and first_available_binary("sh", "bash") is None:
        missing.append("sh")

    if missing:
        logger.warning(
            f"Missing interpreter(s): {', '.join(missing)}. "
            "Plugins that need them will fail until they are installed."
        )

    logger.debug("Dependency check complete.")


def shell_looks_like_bash() -> bool:
    """True when $SHELL points at a POSIX-style interactive shell."""
    shell = os.environ.get("SHELL", "").strip().lower()
    return any(name in shell for name in ("bash", "zsh", "fish"))


def get_environment_context() -> Dict[str, str]:
    """Describe the machine the planner is acting on.

    The values are stable for the lifetime of a session so that they can be
    part of decision cache keys.
    """
    try:
        hostname = platform.node()
    except Exception:
        hostname = "unknown"
    return {
        'os': f"{platform.system()} {platform.release()}".strip(),
        'shell': os.environ.get("SHELL") or os.environ.get("COMSPEC") or "unknown",
        'current_directory': os.getcwd(),
        'current_hostname': hostname,
    }


def format_environment_context(context: Dict[str, str]) -> str:
    """Render the environment context as ``key: value`` lines."""
    return "\n".join(f"- {key}: {value}" for key, value in context.items() if value)


def format_template_string(template: str, **kwargs) -> str:
    """Safely format a template string with context variables."""
    try:
        return template.format(**kwargs)
    except KeyError as e:
        logger.error(f"Missing template variable: {e}")
        return template
    except Exception as e:
        logger.error(f"Template formatting error: {e}")
        return template


def truncate_text(text: str, max_len: int, marker: str = "\n... (truncated)") -> str:
    """Trim ``text`` and cut it to ``max_len`` characters plus a marker."""
    text = (text or "").strip()
    if len(text) <= max_len:
        return text
    return text[:max_len] + marker


def ensure_directory_exists(directory: Path) -> None:
    """Ensure a directory exists, creating it if necessary."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ensured: {directory}")
    except Exception as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        raise


def safe_file_write(file_path: Path, content: str, description: str = None) -> bool:
    """Safely write content to a file with error handling."""
    desc = description or f"file {file_path}"
    try:
        file_path.write_text(content, encoding="utf-8")
        logger.system(f"Generated {desc}")
        return True
    except Exception as e:
        logger.error(f"Failed to write {desc}: {e}")
        return False
