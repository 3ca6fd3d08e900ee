"""
plugmate - local CLI assistant that plans with an LLM and runs PowerShell plugins.

This package discovers plugin scripts and functions, exposes them through a
uniform execution bridge, and drives a planning loop that answers, runs a
plugin, runs a built-in tool, or writes a new plugin function on demand.
"""

__version__ = "1.0.0"
__author__ = "plugmate Team"

# Main API imports
from .core.application import PlugMate, create_application
from .core.session import AskSession
from .config.manager import ConfigManager, create_config_manager

__all__ = [
    "PlugMate",
    "create_application",
    "AskSession",
    "ConfigManager",
    "create_config_manager",
    "__version__",
]
