"""PostgreSQL database adapter."""

from typing import Any, Dict

from sqlalchemy.engine import URL

from labrador.adapters.base import RelationalAdapter


class PostgresAdapter(RelationalAdapter):
    """PostgreSQL adapter over SQLAlchemy and psycopg2.

    Lists and reflects the tables visible on the connection's search path
    (normally the ``public`` schema).
    """

    DEFAULT_PORT = 5432

    def get_driver_name(self) -> str:
        """Get the driver name for PostgreSQL."""
        return "psycopg2"

    def build_connection_url(self) -> URL:
        """Build the PostgreSQL connection URL.

        The password is left out when none is configured so that libpq can
        fall back to trust, peer or ``.pgpass`` authentication.
        """
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=self.config.password or None,
            host=self.config.host,
            port=self.config.port or self.DEFAULT_PORT,
            database=self.config.database,
        )

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get PostgreSQL-specific engine options.

        Every key of ``options`` is passed to libpq (``sslmode``,
        ``connect_timeout``, ``application_name`` ...).
        """
        connect_args: Dict[str, Any] = {
            'connect_timeout': 10,
            'application_name': 'labrador',
        }
        connect_args.update(self.config.options)
        return {'connect_args': connect_args}
