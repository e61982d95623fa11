"""Base relational adapter: session lifecycle, record CRUD and schema reflection."""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy import column, create_engine, delete, func, insert, inspect, select, table, text, update
from sqlalchemy.engine import Connection, Dialect, URL
from sqlalchemy.exc import (
    CompileError,
    DataError,
    DBAPIError,
    IntegrityError,
    NoSuchTableError,
    SQLAlchemyError,
)
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.expression import ColumnElement, Executable, TableClause
from sqlalchemy.types import TypeEngine

from labrador.adapters.query import FieldDescriptor, QueryOptions, QueryResult, Record
from labrador.adapters.session import Session
from labrador.config.models import ConnectionConfig, resolve_user
from labrador.exceptions import (
    AdapterError,
    ConfigurationError,
    ConstraintError,
    DatabaseConnectionError,
    EmptyResultError,
    NotFoundError,
    QueryError,
    SchemaError,
    SessionClosedError,
)

logger = logging.getLogger(__name__)


class RelationalAdapter(ABC):
    """Uniform CRUD facade over one relational database.

    The adapter opens its session on construction and owns it exclusively.
    Every statement runs on that single connection and is committed (or
    rolled back) before the call returns, so no transaction spans two calls.
    """

    def __init__(self, config: Optional[ConnectionConfig] = None, **params: Any) -> None:
        """Initialize the adapter and open its session.

        Args:
            config: Connection configuration. When omitted, ``params``
                (host, user, password, port, database, options) are used.
            **params: Connection parameters used when no config is given.

        Raises:
            ConfigurationError: If the parameters are invalid.
            DatabaseConnectionError: If the database cannot be reached.
        """
        if config is None:
            try:
                config = ConnectionConfig(**params)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid connection parameters: {e}") from e
        elif params:
            raise TypeError("Pass either a ConnectionConfig or connection parameters, not both")

        self.config = config
        # Resolved once; a later change of OS user does not affect this adapter.
        self.user = resolve_user(config.user)
        self.session: Optional[Session] = None
        self.connect()

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "RelationalAdapter":
        """Create an adapter from a connection profile."""
        return cls(config)

    @abstractmethod
    def build_connection_url(self) -> Union[str, URL]:
        """Build the SQLAlchemy URL for this database.

        Returns:
            Connection URL using the resolved user.
        """
        pass

    @abstractmethod
    def get_driver_name(self) -> str:
        """Get the DBAPI driver name for this adapter."""
        pass

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get database-specific engine options.

        Returns:
            Dictionary of extra ``create_engine`` keyword arguments.
        """
        return {}

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> Session:
        """Open the session, or return it if it is already open.

        Raises:
            DatabaseConnectionError: On unreachable host, rejected
                credentials or unknown database.
        """
        if self.session is not None and not self.session.closed:
            return self.session

        try:
            engine = create_engine(
                self.build_connection_url(),
                poolclass=NullPool,
                **self._get_engine_options(),
            )
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(
                f"Failed to create database engine: {e}",
                host=self.config.host,
                database=self.config.database,
            ) from e

        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(
                f"Connection to '{self.config.database}' on {self.config.host} as '{self.user}' failed: {e}"
            )
            raise DatabaseConnectionError(
                f"Could not connect to database '{self.config.database}' "
                f"on {self.config.host} as '{self.user}': {e}",
                host=self.config.host,
                database=self.config.database,
            ) from e

        self.session = Session(engine, connection, self.user, self.config.database)
        logger.info(f"Connected to database '{self.config.database}' as '{self.user}' via {self.get_driver_name()}")
        return self.session

    def connected(self) -> bool:
        """Return True while the session is open and answers a liveness query."""
        return self.session is not None and self.session.ping()

    def close(self) -> None:
        """Release the session. Calling it again has no effect."""
        if self.session is not None:
            self.session.close()

    def __enter__(self) -> "RelationalAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_session(self) -> Session:
        if self.session is None or self.session.closed:
            raise SessionClosedError(
                f"Session to database '{self.config.database}' is closed",
                host=self.config.host,
                database=self.config.database,
            )
        return self.session

    @contextmanager
    def _transaction(self, collection: Optional[str] = None) -> Generator[Connection, None, None]:
        """Yield the session connection and commit on success, roll back on failure."""
        session = self._require_session()

        try:
            yield session.connection
        except SQLAlchemyError as e:
            session.rollback()
            raise self._translate_error(e, collection) from e
        except Exception:
            session.rollback()
            raise
        else:
            try:
                session.connection.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise self._translate_error(e, collection) from e

    def _translate_error(self, error: SQLAlchemyError, collection: Optional[str]) -> AdapterError:
        if isinstance(error, NoSuchTableError):
            return SchemaError(f"Collection '{error}' does not exist", collection)

        if isinstance(error, (IntegrityError, DataError)):
            logger.warning(f"Constraint violation on '{collection}': {error.orig}")
            return ConstraintError(f"Constraint violation on '{collection}': {error.orig}", collection)

        if isinstance(error, DBAPIError) and error.connection_invalidated:
            logger.error(f"Lost connection to database '{self.config.database}': {error}")
            return DatabaseConnectionError(
                f"Lost connection to database '{self.config.database}': {error.orig}",
                host=self.config.host,
                database=self.config.database,
            )

        sql_query = str(error.statement) if isinstance(error, DBAPIError) else None
        logger.error(f"Statement failed on '{collection}': {error}")
        return QueryError(f"Statement failed: {error}", collection, sql_query=sql_query)

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def execute(
        self,
        statement: Union[str, Executable],
        params: Optional[Mapping[str, Any]] = None,
        collection: Optional[str] = None,
    ) -> QueryResult:
        """Execute one statement on the session and commit it.

        Args:
            statement: Raw SQL string (with ``:name`` placeholders) or a
                SQLAlchemy Core statement.
            params: Bound parameters.
            collection: Collection the statement targets, used in errors.

        Returns:
            QueryResult with the returned rows or the affected row count.

        Raises:
            SessionClosedError: If the session is closed.
            ConstraintError: On integrity or type violations.
            QueryError: If the statement fails for any other reason.
        """
        if isinstance(statement, str):
            statement = text(statement)

        start_time = time.time()
        with self._transaction(collection) as connection:
            result = connection.execute(statement, dict(params or {}))

            if result.returns_rows:
                columns = list(result.keys())
                records = [dict(row) for row in result.mappings()]
                query_result = QueryResult(
                    records=records,
                    columns=columns,
                    rows_affected=len(records),
                )
            else:
                query_result = QueryResult(
                    rows_affected=result.rowcount if result.rowcount >= 0 else 0,
                )

        query_result.execution_time = time.time() - start_time
        logger.debug(
            f"Executed statement on '{collection}' in {query_result.execution_time:.4f}s "
            f"({query_result.rows_affected} row(s))"
        )
        return query_result

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def collections(self) -> List[str]:
        """List the tables of the connected database in catalog order."""
        with self._transaction() as connection:
            return inspect(connection).get_table_names()

    @staticmethod
    def _collection_name(collection: str) -> str:
        if not isinstance(collection, str) or not collection.strip():
            raise SchemaError(f"Invalid collection name: {collection!r}")
        return collection

    def _reflect(self, collection: str) -> Tuple[List[Dict[str, Any]], List[str]]:
        """Return the declared columns and primary-key columns of a collection."""
        name = self._collection_name(collection)

        with self._transaction(name) as connection:
            inspector = inspect(connection)
            if not inspector.has_table(name):
                raise SchemaError(f"Collection '{name}' does not exist", name)
            columns = inspector.get_columns(name)
            primary_key = inspector.get_pk_constraint(name).get('constrained_columns') or []

        return columns, list(primary_key)

    @staticmethod
    def _type_name(type_: TypeEngine, dialect: Dialect) -> str:
        try:
            return type_.compile(dialect=dialect)
        except CompileError:
            return type(type_).__name__.upper()

    def schema(self, collection: str) -> List[FieldDescriptor]:
        """Reflect the fields of a collection.

        Args:
            collection: Table name.

        Returns:
            Field descriptors in declared column order, positions starting at 1.

        Raises:
            SchemaError: If the collection does not exist.
        """
        columns, primary_key = self._reflect(collection)
        dialect = self._require_session().engine.dialect

        return [
            FieldDescriptor(
                field=col['name'],
                type=self._type_name(col['type'], dialect),
                position=position,
                nullable=bool(col.get('nullable', True)),
                default=None if col.get('default') is None else str(col['default']),
                primary_key=col['name'] in primary_key,
            )
            for position, col in enumerate(columns, start=1)
        ]

    def primary_key_for(self, collection: str) -> str:
        """Return the primary-key field of a collection.

        Raises:
            SchemaError: If the collection does not exist, has no primary
                key, or has a composite one.
        """
        _, primary_key = self._reflect(collection)
        return self._single_primary_key(collection, primary_key)

    @staticmethod
    def _single_primary_key(collection: str, primary_key: List[str]) -> str:
        if not primary_key:
            raise SchemaError(f"Collection '{collection}' has no primary key", collection)
        if len(primary_key) > 1:
            raise SchemaError(
                f"Collection '{collection}' has a composite primary key {primary_key}",
                collection,
                details={'primary_key': primary_key},
            )
        return primary_key[0]

    def _table(self, collection: str) -> Tuple[TableClause, Optional[str]]:
        """Build a lightweight table construct and find its single primary key, if any."""
        columns, primary_key = self._reflect(collection)
        clause = table(collection, *(column(col['name']) for col in columns))
        return clause, primary_key[0] if len(primary_key) == 1 else None

    def _keyed_table(self, collection: str) -> Tuple[TableClause, str]:
        columns, primary_key = self._reflect(collection)
        key = self._single_primary_key(collection, primary_key)
        return table(collection, *(column(col['name']) for col in columns)), key

    @staticmethod
    def _check_fields(clause: TableClause, attributes: Mapping[str, Any]) -> None:
        unknown = [name for name in attributes if name not in clause.c]
        if unknown:
            raise SchemaError(
                f"Unknown field(s) for collection '{clause.name}': {', '.join(unknown)}",
                clause.name,
                details={'unknown_fields': unknown},
            )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def find(
        self,
        collection: str,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> List[Record]:
        """Query the records of a collection.

        Options may be given as a mapping, as keyword arguments, or both:
        ``limit``, ``skip`` (or ``offset``), ``order_by`` and ``direction``.
        ``skip`` is applied before ``limit``. Without ``order_by`` the
        records are sorted by the primary key; a collection without a
        single primary key is returned in database-native order. Ties on
        ``order_by`` are broken by the primary key in the same direction.

        Returns:
            Records in query order; an empty list when nothing matches.

        Raises:
            QueryOptionsError: If the options are invalid.
            SchemaError: If the collection or the ``order_by`` field does not exist.
        """
        query_options = QueryOptions.parse({**(options or {}), **kwargs})
        clause, primary_key = self._table(collection)

        if query_options.order_by and query_options.order_by not in clause.c:
            raise SchemaError(
                f"Cannot order '{collection}' by unknown field '{query_options.order_by}'",
                collection,
            )

        statement = select(*clause.c)

        sort_fields = [query_options.order_by or primary_key]
        if primary_key and primary_key not in sort_fields:
            sort_fields.append(primary_key)
        for sort_field in filter(None, sort_fields):
            sort_column = clause.c[sort_field]
            statement = statement.order_by(sort_column.desc() if query_options.descending else sort_column.asc())

        if query_options.limit is not None:
            statement = statement.limit(query_options.limit)
        if query_options.skip:
            statement = statement.offset(query_options.skip)

        return self.execute(statement, collection=collection).records

    def count(self, collection: str) -> int:
        """Return the number of records in a collection."""
        clause, _ = self._table(collection)
        statement = select(func.count().label('record_count')).select_from(clause)
        result = self.execute(statement, collection=collection)
        return int(result.records[0]['record_count'])

    def fields_for(self, records: Iterable[Record]) -> List[str]:
        """Return the field names of a result, in field order.

        Raises:
            EmptyResultError: If ``records`` is empty.
        """
        for record in records:
            return list(record.keys())
        raise EmptyResultError("Cannot determine fields from an empty result")

    def create(
        self,
        collection: str,
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        """Insert one record built from ``attributes``.

        Raises:
            SchemaError: If the collection or a field does not exist.
            ConstraintError: On a primary-key collision or a constraint or
                type violation.
        """
        values = {**(attributes or {}), **kwargs}
        clause, _ = self._table(collection)
        self._check_fields(clause, values)

        statement = insert(clause).values(values) if values else insert(clause)
        self.execute(statement, collection=collection)
        logger.info(f"Created record in '{collection}'")

    def _exists(self, clause: TableClause, condition: ColumnElement) -> bool:
        statement = select(func.count().label('record_count')).select_from(clause).where(condition)
        result = self.execute(statement, collection=clause.name)
        return int(result.records[0]['record_count']) > 0

    def update(
        self,
        collection: str,
        primary_key_value: Any,
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        """Change only the given fields of the record with ``primary_key_value``.

        Fields not present in ``attributes`` keep their values. An empty
        ``attributes`` mapping changes nothing but still requires the
        record to exist.

        Raises:
            NotFoundError: If no record has that primary-key value.
            SchemaError: If the collection, its primary key or a field does not exist.
            ConstraintError: On a constraint or type violation.
        """
        values = {**(attributes or {}), **kwargs}
        clause, primary_key = self._keyed_table(collection)
        self._check_fields(clause, values)
        condition = clause.c[primary_key] == primary_key_value

        if not values:
            if not self._exists(clause, condition):
                raise self._not_found(collection, primary_key, primary_key_value)
            return

        result = self.execute(update(clause).where(condition).values(values), collection=collection)
        if result.rows_affected == 0:
            raise self._not_found(collection, primary_key, primary_key_value)
        logger.info(f"Updated record {primary_key}={primary_key_value!r} in '{collection}'")

    def delete(self, collection: str, primary_key_value: Any) -> None:
        """Remove the record with ``primary_key_value``.

        Raises:
            NotFoundError: If no record has that primary-key value.
            SchemaError: If the collection or its primary key does not exist.
        """
        clause, primary_key = self._keyed_table(collection)
        condition = clause.c[primary_key] == primary_key_value

        result = self.execute(delete(clause).where(condition), collection=collection)
        if result.rows_affected == 0:
            raise self._not_found(collection, primary_key, primary_key_value)
        logger.info(f"Deleted record {primary_key}={primary_key_value!r} from '{collection}'")

    @staticmethod
    def _not_found(collection: str, primary_key: str, value: Any) -> NotFoundError:
        return NotFoundError(
            f"No record in '{collection}' with {primary_key}={value!r}",
            collection,
            primary_key_value=value,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.session!r}>"
