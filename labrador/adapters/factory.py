"""Adapter factory and connection-profile resolution."""

import logging
from typing import Dict, Optional, Type

from labrador.adapters.base import RelationalAdapter
from labrador.adapters.postgres import PostgresAdapter
from labrador.config.models import ConnectionConfig, DatabaseType, LabradorConfig
from labrador.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for creating database adapters."""

    _adapters: Dict[DatabaseType, Type[RelationalAdapter]] = {
        DatabaseType.POSTGRESQL: PostgresAdapter,
    }

    @classmethod
    def create_adapter(cls, config: ConnectionConfig) -> RelationalAdapter:
        """Create and connect the adapter matching ``config.type``.

        Raises:
            ConfigurationError: If the database type is not supported.
            DatabaseConnectionError: If the connection cannot be opened.
        """
        adapter_class = cls._adapters.get(config.type)
        if not adapter_class:
            supported_types = [db_type.value for db_type in cls._adapters]
            raise ConfigurationError(
                f"Unsupported database type: {config.type}. "
                f"Supported types: {supported_types}"
            )

        return adapter_class.from_config(config)

    @classmethod
    def register_adapter(cls, db_type: DatabaseType, adapter_class: Type[RelationalAdapter]) -> None:
        """Register a custom database adapter."""
        cls._adapters[db_type] = adapter_class

    @classmethod
    def get_supported_types(cls) -> list[DatabaseType]:
        """Get list of supported database types."""
        return list(cls._adapters.keys())


def resolve_profile(config: LabradorConfig, name: Optional[str] = None) -> ConnectionConfig:
    """Return the named connection profile, or the default one.

    Raises:
        ConfigurationError: If the profile does not exist.
    """
    db_name = name or config.default_database
    if not db_name:
        raise ConfigurationError("No database specified and no default database configured")

    if db_name not in config.databases:
        available_dbs = list(config.databases.keys())
        raise ConfigurationError(
            f"Database '{db_name}' not found in configuration. "
            f"Available databases: {available_dbs}"
        )

    return config.databases[db_name]


def open_adapter(name: Optional[str] = None, config: Optional[LabradorConfig] = None) -> RelationalAdapter:
    """Open an adapter for a named profile of the given (or global) configuration."""
    if config is None:
        from labrador.config import get_config
        config = get_config()

    profile = resolve_profile(config, name)
    logger.debug(f"Opening {profile.type.value} adapter for profile '{name or config.default_database}'")
    return AdapterFactory.create_adapter(profile)
