"""Exclusively owned database session."""

import logging
import weakref
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def _release(engine: Engine, connection: Connection) -> None:
    try:
        connection.close()
    finally:
        engine.dispose()


class Session:
    """One open connection to one database plus the credentials it was opened with.

    The session owns its engine and its single connection. Closing is
    idempotent and terminal; a session that is garbage collected while
    still open is closed by a finalizer.
    """

    def __init__(self, engine: Engine, connection: Connection, user: str, database: str) -> None:
        self.engine = engine
        self.connection = connection
        self.user = user
        self.database = database
        self._finalizer = weakref.finalize(self, _release, engine, connection)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive or self.connection.closed

    def ping(self) -> bool:
        """Run a trivial statement to check the connection is still usable."""
        if self.closed:
            return False
        try:
            self.connection.execute(text("SELECT 1")).scalar()
            self.connection.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Liveness check failed for database '{self.database}': {e}")
            self.rollback()
            return False

    def rollback(self) -> None:
        """Roll back the current transaction, logging rather than raising on failure."""
        try:
            self.connection.rollback()
        except SQLAlchemyError as e:
            logger.debug(f"Rollback after failed statement also failed: {e}")

    def close(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._finalizer.alive:
            logger.info(f"Closing session to database '{self.database}' as '{self.user}'")
            self._finalizer()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Session {self.user}@{self.database} ({state})>"
