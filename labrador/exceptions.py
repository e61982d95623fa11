"""Core exceptions for the Labrador database adapters."""

from typing import Any, Dict, Optional


class LabradorError(Exception):
    """Base exception for all Labrador errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(LabradorError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class AdapterError(LabradorError):
    """Base class for errors raised by a database adapter."""
    
    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.collection = collection


class DatabaseConnectionError(AdapterError, ConnectionError):
    """Raised when the database is unreachable, rejects the credentials or is unknown."""
    
    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        database: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details=details)
        self.host = host
        self.database = database


class SessionClosedError(DatabaseConnectionError):
    """Raised when an operation is attempted on a closed session."""
    pass


class SchemaError(AdapterError):
    """Raised for a missing collection, a missing or composite primary key, or an unknown field."""
    pass


class ConstraintError(AdapterError):
    """Raised when a write violates a uniqueness, not-null or type constraint."""
    pass


class NotFoundError(AdapterError):
    """Raised when the record targeted by an update or delete does not exist."""
    
    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        primary_key_value: Any = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, collection, details)
        self.primary_key_value = primary_key_value


class EmptyResultError(AdapterError):
    """Raised when field names are requested from an empty result."""
    pass


class QueryOptionsError(AdapterError):
    """Raised when find options are invalid."""
    pass


class QueryError(AdapterError):
    """Raised when a statement fails for any other reason."""
    
    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        sql_query: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, collection, details)
        self.sql_query = sql_query
