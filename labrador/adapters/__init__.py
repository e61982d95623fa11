"""Database adapters and their query primitives."""

from labrador.adapters.base import RelationalAdapter
from labrador.adapters.factory import AdapterFactory, open_adapter, resolve_profile
from labrador.adapters.postgres import PostgresAdapter
from labrador.adapters.query import FieldDescriptor, QueryOptions, QueryResult, Record
from labrador.adapters.session import Session

__all__ = [
    # Base classes
    "RelationalAdapter",
    "Session",
    # Query primitives
    "FieldDescriptor",
    "QueryOptions",
    "QueryResult",
    "Record",
    # Adapters
    "PostgresAdapter",
    # Factory
    "AdapterFactory",
    "open_adapter",
    "resolve_profile",
]
