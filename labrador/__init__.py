"""Labrador: database adapters for a data-browsing tool.

Each adapter exposes the same small surface over one database:
- Session lifecycle (connect, liveness check, close)
- Collection listing and primary-key discovery
- Paginated and sorted record queries
- Record creation, partial update and deletion
- Field-level schema reflection
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from labrador.exceptions import (
    LabradorError,
    ConfigurationError,
    AdapterError,
    DatabaseConnectionError,
    SessionClosedError,
    SchemaError,
    ConstraintError,
    NotFoundError,
    EmptyResultError,
    QueryOptionsError,
    QueryError,
)

__all__ = [
    "__version__",
    "LabradorError",
    "ConfigurationError",
    "AdapterError",
    "DatabaseConnectionError",
    "SessionClosedError",
    "SchemaError",
    "ConstraintError",
    "NotFoundError",
    "EmptyResultError",
    "QueryOptionsError",
    "QueryError",
]
