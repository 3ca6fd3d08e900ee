"""Utility functions and helpers for plugmate."""

from .logging import logger, log_message, get_current_timestamp
from .helpers import (
    check_dependencies,
    first_available_binary,
    shell_looks_like_bash,
    get_environment_context,
    format_environment_context,
    format_template_string,
    truncate_text,
    ensure_directory_exists,
    safe_file_write,
)

__all__ = [
    "logger",
    "log_message", 
    "get_current_timestamp",
    "check_dependencies",
    "first_available_binary",
    "shell_looks_like_bash",
    "get_environment_context",
    "format_environment_context",
    "format_template_string",
    "truncate_text",
    "ensure_directory_exists",
    "safe_file_write",
]
