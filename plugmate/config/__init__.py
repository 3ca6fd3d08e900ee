"""Configuration management for plugmate."""

from .manager import (
    ConfigManager,
    create_config_manager,
    default_config,
    normalize_provider,
    normalize_risk_policy,
    write_config_template,
)
from .templates import CONFIG_TEMPLATE

__all__ = [
    "ConfigManager",
    "create_config_manager",
    "default_config",
    "normalize_provider",
    "normalize_risk_policy",
    "write_config_template",
    "CONFIG_TEMPLATE",
]
