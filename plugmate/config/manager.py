"""Configuration manager for plugmate."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..constants import (
    CONFIG_DIR, CONFIG_FILE, CONFIG_ENV_VAR, LOCAL_CONFIG_NAME, OPENAI_API_KEY_ENV_VAR,
    PROVIDERS, DEFAULT_PROVIDER, DEFAULT_OLLAMA_BASE_URL, DEFAULT_OLLAMA_MODEL,
    DEFAULT_OPENAI_BASE_URL, DEFAULT_OPENAI_MODEL, RISK_POLICIES, DEFAULT_RISK_POLICY,
    DEFAULT_CONFIRM_TOOLS, DEFAULT_MAX_STEPS, DEFAULT_DECISION_CACHE_TTL,
    DEFAULT_HTTP_TIMEOUT, DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_ENABLE_DEBUG,
    PLUGINS_SUBDIR,
)
from ..errors import ConfigError
from ..utils.logging import logger
from ..utils.helpers import ensure_directory_exists, format_template_string, safe_file_write
from .templates import CONFIG_TEMPLATE


def default_config() -> Dict[str, Any]:
    """Built-in defaults used for every key the config file leaves out."""
    return {
        "base_dir": str(CONFIG_DIR),
        "provider": DEFAULT_PROVIDER,
        "ollama": {"base_url": DEFAULT_OLLAMA_BASE_URL, "model": DEFAULT_OLLAMA_MODEL},
        "openai": {"api_key": "", "base_url": DEFAULT_OPENAI_BASE_URL, "model": DEFAULT_OPENAI_MODEL},
        "risk_policy": DEFAULT_RISK_POLICY,
        "confirm_tools": DEFAULT_CONFIRM_TOOLS,
        "max_steps": DEFAULT_MAX_STEPS,
        "decision_cache_ttl": DEFAULT_DECISION_CACHE_TTL,
        "http_timeout": DEFAULT_HTTP_TIMEOUT,
        "max_retries": DEFAULT_MAX_RETRIES,
        "retry_delay": DEFAULT_RETRY_DELAY,
        "enable_debug": DEFAULT_ENABLE_DEBUG,
    }


def normalize_risk_policy(raw: Optional[str]) -> str:
    """Lower-case and validate a risk policy; empty means ``normal``.

    Raises:
        ConfigError: The value is not strict, normal or off
    """
    policy = (raw or "").strip().lower()
    if not policy:
        return DEFAULT_RISK_POLICY
    if policy not in RISK_POLICIES:
        raise ConfigError(f"invalid risk policy {raw!r} (use strict|normal|off)")
    return policy


def normalize_provider(raw: Optional[str]) -> str:
    """Lower-case and validate a provider name; empty means the default.

    Raises:
        ConfigError: The value is not auto, ollama or openai
    """
    provider = (raw or "").strip().lower()
    if not provider:
        return DEFAULT_PROVIDER
    if provider not in PROVIDERS:
        raise ConfigError(f"invalid provider {raw!r} (use auto|ollama|openai)")
    return provider


class ConfigManager:
    """Locates, loads and validates the plugmate configuration file."""
    
    def __init__(self, config_path: Optional[Path] = None):
        """Initialize the configuration manager.
        
        Args:
            config_path: Explicit configuration file (``--config``)
        """
        self.explicit_path = Path(config_path).expanduser() if config_path else None
        self.config_file: Optional[Path] = None
        self._config: Optional[Dict[str, Any]] = None
    
    def candidate_paths(self) -> List[Path]:
        """Configuration files in search order."""
        if self.explicit_path is not None:
            return [self.explicit_path]
        paths = []
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        if env_path:
            paths.append(Path(env_path).expanduser())
        paths.append(Path.cwd() / LOCAL_CONFIG_NAME)
        paths.append(CONFIG_FILE)
        return paths
    
    def resolve_config_path(self) -> Optional[Path]:
        """Return the first existing configuration file.

        Raises:
            ConfigError: An explicit ``--config`` path does not exist
        """
        if self.explicit_path is not None and not self.explicit_path.is_file():
            raise ConfigError(f"configuration file not found: {self.explicit_path}")
        for path in self.candidate_paths():
            if path.is_file():
                return path
        return None
    
    def initialize(self) -> Dict[str, Any]:
        """Load the configuration, falling back to defaults when no file exists."""
        self.config_file = self.resolve_config_path()
        if self.config_file is None:
            logger.debug("No configuration file found; using built-in defaults")
            self._config = self._validate(default_config(), "built-in defaults")
        else:
            self._config = self._load_config(self.config_file)
        return self.config
    
    def _load_config(self, path: Path) -> Dict[str, Any]:
        """Load and validate one configuration file."""
        try:
            with open(path, 'r', encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing YAML file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Could not read {path}: {e}") from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigError(f"{path} is not a valid YAML dictionary.")

        merged = default_config()
        for key, value in config_data.items():
            if key not in merged:
                logger.warning(f"Unknown key '{key}' in {path} ignored.")
                continue
            if value is None:
                continue
            if key in ("ollama", "openai"):
                if not isinstance(value, dict):
                    raise ConfigError(f"'{key}' in {path} must be a mapping.")
                merged[key].update({k: v for k, v in value.items() if v is not None})
            else:
                merged[key] = value

        config = self._validate(merged, str(path))
        logger.debug(f"Configuration loaded successfully from {path}")
        return config
    
    def _validate(self, config: Dict[str, Any], source: str) -> Dict[str, Any]:
        config["provider"] = normalize_provider(str(config["provider"]))
        config["risk_policy"] = normalize_risk_policy(str(config["risk_policy"]))
        config["base_dir"] = str(Path(str(config["base_dir"])).expanduser())

        for section in ("ollama", "openai"):
            config[section] = {k: str(v).strip() for k, v in config[section].items()}

        for key in ("confirm_tools", "enable_debug"):
            if not isinstance(config[key], bool):
                raise ConfigError(f"{key} in {source} must be true/false, got {config[key]!r}.")

        for key, minimum in (("max_steps", 1), ("max_retries", 0)):
            value = config[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ConfigError(f"{key} ('{value}') in {source} must be an integer >= {minimum}.")

        for key in ("decision_cache_ttl", "http_timeout", "retry_delay"):
            value = config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"{key} ('{value}') in {source} must be a non-negative number.")
        if config["http_timeout"] == 0:
            raise ConfigError(f"http_timeout in {source} must be greater than zero.")

        return config
    
    def apply_overrides(self, **overrides: Any) -> Dict[str, Any]:
        """Apply call-site overrides (CLI flags); None values are ignored.

        Raises:
            ConfigError: An override has an invalid value
        """
        config = self._require()
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in config:
                raise ConfigError(f"unknown configuration key: {key}")
            config[key] = value
        self._config = self._validate(config, "command line")
        return self.config
    
    def _require(self) -> Dict[str, Any]:
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call initialize() first.")
        return self._config

    @property
    def config(self) -> Dict[str, Any]:
        """Get a copy of the current configuration."""
        return copy.deepcopy(self._require())
    
    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._require().get(key, default)
    
    @property
    def base_dir(self) -> Path:
        return Path(self._require()["base_dir"])

    @property
    def plugins_dir(self) -> Path:
        return self.base_dir / PLUGINS_SUBDIR

    def openai_api_key(self) -> str:
        """API key from the config file, else from OPENAI_API_KEY."""
        key = self._require()["openai"].get("api_key", "").strip()
        return key or os.environ.get(OPENAI_API_KEY_ENV_VAR, "").strip()

    def describe_source(self) -> str:
        """Where the configuration came from, for error messages."""
        return str(self.config_file) if self.config_file else str(CONFIG_FILE)

    def summary(self) -> str:
        """Human readable summary with the API key masked."""
        config = self._require()
        key = self.openai_api_key()
        masked = f"{key[:4]}...{key[-4:]}" if len(key) > 8 else ("set" if key else "not set")
        lines = [
            f"Config file: {self.config_file or '(none, using defaults)'}",
            f"Base dir: {config['base_dir']}",
            f"Plugins dir: {self.plugins_dir}",
            f"Provider: {config['provider']}",
            f"Ollama: {config['ollama']['base_url']} ({config['ollama']['model']})",
            f"OpenAI: {config['openai']['base_url']} ({config['openai']['model']}), key {masked}",
            f"Risk policy: {config['risk_policy']}",
            f"Confirm tools: {config['confirm_tools']}",
            f"Max steps: {config['max_steps']}",
            f"Decision cache TTL: {config['decision_cache_ttl']}s",
            f"HTTP timeout: {config['http_timeout']}s, retries: {config['max_retries']}, "
            f"retry delay: {config['retry_delay']}s",
            f"Debug: {config['enable_debug']}",
        ]
        return "\n".join(lines)

    def reload(self) -> None:
        """Reload the configuration from disk."""
        self.initialize()

    def is_initialized(self) -> bool:
        """Check if the configuration has been initialized."""
        return self._config is not None


def write_config_template(path: Optional[Path] = None) -> bool:
    """Write the commented configuration template, never overwriting.

    Returns:
        True if the file was written, False if it already existed or failed
    """
    target = Path(path).expanduser() if path else CONFIG_FILE
    if target.exists():
        logger.warning(f"Configuration file already exists: {target}")
        return False
    try:
        ensure_directory_exists(target.parent)
    except OSError:
        return False
    content = format_template_string(CONFIG_TEMPLATE, base_dir=str(CONFIG_DIR))
    return safe_file_write(target, content, f"config template {target}")


def create_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """Create and initialize a configuration manager.
    
    Args:
        config_path: Explicit configuration file path
        
    Returns:
        Initialized ConfigManager instance

    Raises:
        ConfigError: The configuration file is invalid
    """
    manager = ConfigManager(config_path)
    manager.initialize()
    return manager
