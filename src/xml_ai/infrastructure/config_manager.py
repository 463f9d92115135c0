"""Thread-safe configuration management."""

import copy
import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, cast

import yaml

from ..exceptions import ConfigurationError
from ..services import IConfigurationManager

ENV_PREFIX = "XML_AI_"

DEFAULTS: Dict[str, Any] = {
    "api": {
        "base_url": "https://api.openai.com/v1",
        "timeout": 120,
        "connect_timeout": 10,
        "max_retries": 0,
        "default_model": "gpt-4",
    },
    "logging": {
        "level": "WARNING",
        "file": None,
    },
}


class ConfigurationManager(IConfigurationManager):
    """Configuration layered as defaults, then file, then environment."""

    def __init__(self, config_file: Optional[Path | str] = None, env_prefix: str = ENV_PREFIX):
        """Initialize configuration manager.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            env_prefix: Prefix of environment variables that override keys
        """
        self._config_file: Optional[Path] = Path(config_file) if isinstance(config_file, str) else config_file
        self._env_prefix = env_prefix
        self._lock = threading.RLock()
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULTS)

        if self._config_file:
            self.reload()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Supports dot notation for nested keys (e.g., 'api.timeout').
        ``XML_AI_API_TIMEOUT`` overrides ``api.timeout``.
        """
        with self._lock:
            env_key = self._env_prefix + key.upper().replace(".", "_")
            env_value = os.getenv(env_key)
            if env_value is not None:
                return self._parse_env_value(env_value)

            current: Any = self._config
            for k in key.split("."):
                if not isinstance(current, Mapping):
                    return default
                current_map = cast(Mapping[str, Any], current)
                if current_map.get(k) is None:
                    return default
                current = current_map[k]
            return current

    def set(self, key: str, value: Any) -> None:
        """Set configuration value in memory."""
        with self._lock:
            keys = key.split(".")
            config = self._config
            for k in keys[:-1]:
                if not isinstance(config.get(k), dict):
                    config[k] = {}
                config = config[k]
            config[keys[-1]] = value

    def reload(self) -> None:
        """Reload configuration from file on top of the defaults.

        Raises:
            ConfigurationError: If the file is missing, unsupported or not a mapping
        """
        with self._lock:
            config = copy.deepcopy(DEFAULTS)
            if not self._config_file:
                self._config = config
                return

            if not self._config_file.exists():
                raise ConfigurationError("configuration file not found", {"path": str(self._config_file)})

            suffix = self._config_file.suffix.lower()
            data: Any
            with open(self._config_file, "r", encoding="utf-8") as f:
                if suffix in {".yaml", ".yml"}:
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigurationError(f"unsupported configuration file format: {suffix}")

            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ConfigurationError("configuration file must contain a mapping", {"path": str(self._config_file)})

            self._deep_merge(config, cast(Dict[str, Any], data))
            self._config = config

    def get_all(self) -> Dict[str, Any]:
        """Get entire configuration as a dictionary."""
        with self._lock:
            return copy.deepcopy(self._config)

    def merge(self, config: Mapping[str, Any]) -> None:
        """Merge configuration dictionary into current config."""
        with self._lock:
            self._deep_merge(self._config, {str(key): value for key, value in config.items()})

    @staticmethod
    def _deep_merge(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
        """Deep merge source into target dictionary."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                ConfigurationManager._deep_merge(target[key], cast(Mapping[str, Any], value))
            else:
                target[key] = value

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return value


__all__ = ["DEFAULTS", "ENV_PREFIX", "ConfigurationManager"]
