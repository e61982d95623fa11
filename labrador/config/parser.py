"""YAML configuration loading for Labrador."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from labrador.config.models import LabradorConfig, EnvironmentSettings
from labrador.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigParser:
    """Loads connection profiles from YAML, resolving ``${VAR}`` references."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')
    DEFAULT_LOCATIONS = (
        "labrador.yaml",
        "labrador.yml",
        "config/database.yml",
        "config/database.yaml",
    )

    def __init__(self, env_settings: Optional[EnvironmentSettings] = None) -> None:
        self.env_settings = env_settings or EnvironmentSettings()

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> LabradorConfig:
        """Load and validate configuration from a YAML file.

        Args:
            config_path: Path to the configuration file. If None, the
                ``LABRADOR_CONFIG_FILE`` setting and then the default
                locations are tried.

        Returns:
            Validated LabradorConfig instance.

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid.
        """
        config_file = self._find_config_file(config_path)
        logger.debug(f"Loading configuration from {config_file}")

        try:
            with open(config_file, 'r', encoding='utf-8') as file:
                raw_config = yaml.safe_load(file)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file '{config_file}' not found") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in '{config_file}': {e}") from e

        if not raw_config:
            raise ConfigurationError(f"Configuration file '{config_file}' is empty")
        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration file '{config_file}' must contain a mapping")

        processed_config = self._process_env_vars(raw_config)

        try:
            return LabradorConfig(**processed_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _find_config_file(self, config_path: Optional[Union[str, Path]]) -> Path:
        if config_path:
            path = Path(config_path)
            if path.exists():
                return path
            raise ConfigurationError(f"Configuration file '{config_path}' not found")

        if self.env_settings.config_file:
            path = Path(self.env_settings.config_file)
            if path.exists():
                return path

        candidates = [Path.cwd() / location for location in self.DEFAULT_LOCATIONS]
        for location in candidates:
            if location.exists():
                return location

        raise ConfigurationError(
            f"No configuration file found in default locations: {[str(c) for c in candidates]}"
        )

    def _process_env_vars(self, config: Any) -> Any:
        if isinstance(config, dict):
            return {key: self._process_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._process_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_vars(config)
        return config

    def _substitute_env_vars(self, value: str) -> str:
        """Substitute ``${VAR}`` and ``${VAR:-default}`` references.

        Raises:
            ConfigurationError: If a variable without a default is not set.
        """
        def replace_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default.strip())

            var_name = var_expr.strip()
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(f"Required environment variable '{var_name}' is not set")
            return env_value

        return self.ENV_VAR_PATTERN.sub(replace_var, value)

    def create_sample_config(self, output_path: Union[str, Path]) -> None:
        """Write a sample configuration file to ``output_path``."""
        sample_config = {
            'databases': {
                'dev': {
                    'type': 'postgresql',
                    'host': 'localhost',
                    'port': 5432,
                    'database': 'labrador_dev',
                    'user': '${LABRADOR_DB_USER:-}',
                    'password': '${LABRADOR_DB_PASSWORD:-}',
                    'options': {
                        'sslmode': 'prefer',
                        'connect_timeout': 10,
                    },
                },
            },
            'default_database': 'dev',
        }

        with open(output_path, 'w', encoding='utf-8') as file:
            yaml.safe_dump(sample_config, file, default_flow_style=False, sort_keys=False)


# Global configuration instance
_config_parser = ConfigParser()
_loaded_config: Optional[LabradorConfig] = None


def get_config(config_path: Optional[Union[str, Path]] = None, reload: bool = False) -> LabradorConfig:
    """Get the global configuration instance.

    A ``config_path`` different from the one already loaded is always read.
    """
    global _loaded_config

    if _loaded_config is None or reload or config_path is not None:
        _loaded_config = _config_parser.load_config(config_path)

    return _loaded_config


def validate_config_file(config_path: Union[str, Path]) -> bool:
    """Validate a configuration file, raising ConfigurationError if invalid."""
    _config_parser.load_config(config_path)
    return True


def create_sample_config(output_path: Union[str, Path]) -> None:
    """Create a sample configuration file."""
    _config_parser.create_sample_config(output_path)
