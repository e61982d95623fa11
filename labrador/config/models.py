"""Pydantic models for Labrador configuration."""

import getpass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings

from labrador.exceptions import ConfigurationError


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"


class ConnectionConfig(BaseModel):
    """Connection parameters for one database."""

    model_config = ConfigDict(populate_by_name=True)

    type: DatabaseType = Field(
        default=DatabaseType.POSTGRESQL,
        validation_alias=AliasChoices("type", "driver", "adapter"),
    )
    host: str = "localhost"
    port: Optional[int] = None
    database: str
    user: Optional[str] = Field(default=None, validation_alias=AliasChoices("user", "username"))
    password: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('port')
    def validate_port(cls, v):
        """Validate port number range."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator('database')
    def validate_database(cls, v):
        """Reject blank database names."""
        if not v or not v.strip():
            raise ValueError("database must not be empty")
        return v

    @model_validator(mode='after')
    def normalize_user(self):
        """Treat an empty user the same as a missing one."""
        if self.user is not None and not self.user.strip():
            object.__setattr__(self, "user", None)
        return self


def resolve_user(user: Optional[str]) -> str:
    """Return ``user``, or the operating-system user when it is missing or empty.

    Raises:
        ConfigurationError: If no user was given and the OS user cannot be determined.
    """
    if user:
        return user
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        raise ConfigurationError(f"No database user given and the OS user is unknown: {e}") from e


class LabradorConfig(BaseModel):
    """Main configuration model: named connection profiles."""
    databases: Dict[str, ConnectionConfig]
    default_database: Optional[str] = None

    @model_validator(mode='after')
    def validate_default_database(self):
        """Ensure default_database exists in databases."""
        if self.default_database and self.default_database not in self.databases:
            raise ValueError(f"default_database '{self.default_database}' not found in databases")
        return self

    @model_validator(mode='after')
    def set_default_database(self):
        """Set default database if not specified."""
        if not self.default_database and self.databases:
            self.default_database = next(iter(self.databases))
        return self


class EnvironmentSettings(BaseSettings):
    """Environment-specific settings."""
    log_level: str = Field(default="WARNING")
    debug: bool = Field(default=False)
    config_file: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LABRADOR_"
        case_sensitive = False
