"""
Configuration loader for cloud_data.

Configuration comes from an optional JSON file and from ``CLOUD_DATA_*``
environment variables, environment variables taking precedence.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .models import CloudDataConfig


class ConfigLoader:
    """Configuration loader with support for a JSON file and the environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            environ: Environment mapping to read from (defaults to ``os.environ``)
        """
        self.environ = environ if environ is not None else os.environ
        self.config_paths = [
            Path("cloud_data.json"),
            Path("config/cloud_data.json"),
            Path.home() / ".cloud_data" / "config.json",
        ]

        # Environment variable prefix
        self.env_prefix = "CLOUD_DATA_"

    def load_config(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> CloudDataConfig:
        """
        Load configuration from all available sources.

        Args:
            config_file: Specific config file to load

        Returns:
            CloudDataConfig instance with merged configuration
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_from_file(config_file)
        if file_config:
            config_data.update(file_config)

        env_config = self._load_from_environment()
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        try:
            return CloudDataConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid cloud data configuration: {e}")

    def _load_from_file(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            return self._parse_config_file(config_path)

        for config_path in self.config_paths:
            if config_path.exists():
                return self._parse_config_file(config_path)

        return None

    def _parse_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Parse a JSON configuration file."""
        if config_path.suffix.lower() != ".json":
            raise ConfigurationError(
                f"Unsupported config file format: {config_path.suffix}"
            )
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                return json.load(f) or {}
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}")

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # The internal environment name is only a fallback for the explicit one
        environment = self.environ.get(f"{self.env_prefix}ENV") or self.environ.get(
            f"{self.env_prefix}INTERNAL_ENV"
        )
        if environment:
            config["environment"] = environment

        env_mappings = {
            f"{self.env_prefix}GRAPHQL_PATH": ("graphql_path",),
            f"{self.env_prefix}CLIENT_VERSION": ("client_version",),
            f"{self.env_prefix}REQUEST_TIMEOUT": ("request_timeout",),
            f"{self.env_prefix}DIVERGENCE_RECOVERY_LIMIT": ("divergence_recovery_limit",),
            # Logging
            f"{self.env_prefix}LOG_LEVEL": ("logging", "level"),
            f"{self.env_prefix}LOG_FORMAT": ("logging", "format"),
            f"{self.env_prefix}LOG_STRUCTURED": ("logging", "enable_structured"),
        }

        for env_var, config_path in env_mappings.items():
            value = self.environ.get(env_var)
            if value is not None:
                converted_value = self._convert_env_value(value)

                current = config
                for key in config_path[:-1]:
                    current = current.setdefault(key, {})
                current[config_path[-1]] = converted_value

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        lower = value.lower()
        if lower in ("true", "yes", "on"):
            return True
        if lower in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_config(config_file: Optional[Union[str, Path]] = None) -> CloudDataConfig:
    """Load configuration from the process environment and an optional file."""
    return ConfigLoader().load_config(config_file)
