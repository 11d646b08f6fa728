"""
Configuration loading for MySQL Dump Adapter.
"""

import os
import re
from typing import Any

import yaml

from .exceptions import DomainError


class ConfigLoader:
    """Loads adapter configuration from a YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    DEFAULT_ADAPTER_SETTINGS = {
        'strategy': 'mydumper',
        'connection': 'default',
        'output_dir': '.',
    }

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise DomainError(f"Configuration file '{self.config_path}' must contain a mapping.")
        return self._resolve_env_vars(config)

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve ${VAR} references; unset variables become empty strings."""
        if isinstance(obj, str):
            return self.ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), ''), obj)
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def get_connections(self) -> dict[str, dict[str, Any]]:
        """Get all named connection mappings."""
        return self.config.get('connections') or {}

    def get_connection(self, name: str) -> dict[str, Any]:
        """Get one named connection mapping."""
        connections = self.get_connections()
        if name not in connections:
            raise DomainError(f'Connection "{name}" not provided in connection configuration.')
        return connections[name]

    def get_adapter_settings(self) -> dict[str, Any]:
        """Get adapter settings merged over the defaults."""
        return {**self.DEFAULT_ADAPTER_SETTINGS, **(self.config.get('adapter') or {})}

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return dict(self.config.get('logging') or {})
