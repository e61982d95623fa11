"""Query options, result containers and field descriptors."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from labrador.exceptions import QueryOptionsError

# One row: field name -> scalar value, in declared column order.
Record = Dict[str, Any]


class QueryOptions(BaseModel):
    """Pagination and ordering options accepted by ``find``."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    limit: Optional[int] = Field(default=None, ge=0)
    skip: int = Field(default=0, ge=0)
    order_by: Optional[str] = None
    direction: str = "asc"

    @field_validator('direction', mode='before')
    def validate_direction(cls, v):
        """Accept ``asc``/``desc`` in any case."""
        if v is None:
            return "asc"
        direction = str(v).strip().lower()
        if direction not in ("asc", "desc"):
            raise ValueError("direction must be 'asc' or 'desc'")
        return direction

    @field_validator('order_by')
    def validate_order_by(cls, v):
        if v is not None and not v.strip():
            raise ValueError("order_by must not be empty")
        return v

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    @classmethod
    def parse(cls, options: Optional[Mapping[str, Any]] = None) -> "QueryOptions":
        """Build options from a plain mapping; ``offset`` is an alias of ``skip``.

        Raises:
            QueryOptionsError: On unknown keys or invalid values.
        """
        values = dict(options or {})
        if 'offset' in values:
            offset = values.pop('offset')
            if 'skip' in values and values['skip'] != offset:
                raise QueryOptionsError("'skip' and 'offset' were both given with different values")
            values['skip'] = offset
        if values.get('skip') is None:
            values.pop('skip', None)

        try:
            return cls(**values)
        except ValidationError as e:
            raise QueryOptionsError(f"Invalid query options: {e}", details={'options': dict(options or {})}) from e


@dataclass(frozen=True)
class FieldDescriptor:
    """One column of a collection, as declared in the catalog."""

    field: str
    type: str
    position: int
    nullable: bool = True
    default: Optional[str] = None
    primary_key: bool = False

    def __getitem__(self, key: str) -> Any:
        if key not in self.__dataclass_fields__:
            raise KeyError(key)
        return getattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class QueryResult:
    """Container for statement results with metadata."""

    def __init__(
        self,
        records: Optional[List[Record]] = None,
        columns: Optional[List[str]] = None,
        rows_affected: Optional[int] = None,
        execution_time: Optional[float] = None,
    ) -> None:
        """Initialize query result.

        Args:
            records: Returned rows as ordered field -> value mappings.
            columns: Column names of the result, in select order.
            rows_affected: Number of rows returned or changed.
            execution_time: Execution time in seconds.
        """
        self.records = records or []
        self.columns = columns or []
        self.rows_affected = rows_affected or 0
        self.execution_time = execution_time or 0.0

    @property
    def is_empty(self) -> bool:
        """Check if result is empty."""
        return not self.records

    @property
    def row_count(self) -> int:
        """Get number of rows in result."""
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary."""
        return {
            'records': self.records,
            'columns': self.columns,
            'rows_affected': self.rows_affected,
            'execution_time': self.execution_time,
            'row_count': self.row_count,
            'is_empty': self.is_empty,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Return the rows as a DataFrame with columns in result order."""
        return pd.DataFrame.from_records(self.records, columns=self.columns or None)
