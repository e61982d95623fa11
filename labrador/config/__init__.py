"""Configuration management for Labrador."""

from labrador.config.models import (
    DatabaseType,
    ConnectionConfig,
    LabradorConfig,
    EnvironmentSettings,
    resolve_user,
)
from labrador.config.parser import (
    ConfigParser,
    get_config,
    validate_config_file,
    create_sample_config,
)

__all__ = [
    # Models
    "DatabaseType",
    "ConnectionConfig",
    "LabradorConfig",
    "EnvironmentSettings",
    "resolve_user",
    # Parser
    "ConfigParser",
    "get_config",
    "validate_config_file",
    "create_sample_config",
]
