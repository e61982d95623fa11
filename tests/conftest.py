"""Shared fixtures: adapters over SQLite and, when configured, PostgreSQL."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from labrador.adapters.base import RelationalAdapter
from labrador.adapters.postgres import PostgresAdapter
from labrador.config.models import ConnectionConfig


class SQLiteTestAdapter(RelationalAdapter):
    """Adapter over a SQLite file, exercising the same SQLAlchemy code path."""

    def get_driver_name(self) -> str:
        return "pysqlite"

    def build_connection_url(self) -> str:
        return f"sqlite:///{self.config.database}"


def postgres_test_config() -> ConnectionConfig | None:
    """Connection settings from ``LABRADOR_TEST_PG_*``, or None when unset."""
    database = os.getenv("LABRADOR_TEST_PG_DATABASE")
    if not database:
        return None
    return ConnectionConfig(
        host=os.getenv("LABRADOR_TEST_PG_HOST", "localhost"),
        port=int(os.getenv("LABRADOR_TEST_PG_PORT", "5432")),
        user=os.getenv("LABRADOR_TEST_PG_USER") or None,
        password=os.getenv("LABRADOR_TEST_PG_PASSWORD") or None,
        database=database,
    )


FIXTURE_TABLES = ("users", "no_key", "pairs")


def seed_users(adapter: RelationalAdapter, count: int = 20) -> None:
    """Recreate ``users`` with ids 1..count, ``userN`` names and age N + 10."""
    for name in FIXTURE_TABLES:
        adapter.execute(f"DROP TABLE IF EXISTS {name}")
    adapter.execute(
        """
        CREATE TABLE users(
            id INTEGER PRIMARY KEY UNIQUE,
            username VARCHAR(25),
            age INTEGER
        )
        """
    )
    for i in range(1, count + 1):
        adapter.execute(
            "INSERT INTO users (id, username, age) VALUES (:id, :username, :age)",
            {"id": i, "username": f"user{i}", "age": i + 10},
        )


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "labrador_test.db"


@pytest.fixture
def sqlite_adapter_class() -> type[SQLiteTestAdapter]:
    return SQLiteTestAdapter


@pytest.fixture
def seeded_sqlite(sqlite_path: Path) -> Path:
    """A SQLite file holding the seeded ``users`` collection."""
    with SQLiteTestAdapter(database=str(sqlite_path), user="tester") as seeder:
        seed_users(seeder)
    return sqlite_path


@pytest.fixture(params=["sqlite", pytest.param("postgres", marks=pytest.mark.postgres)])
def backend(request: pytest.FixtureRequest, sqlite_path: Path) -> Iterator[RelationalAdapter]:
    """An open adapter on an empty database, closed after the test."""
    if request.param == "sqlite":
        adapter: RelationalAdapter = SQLiteTestAdapter(database=str(sqlite_path), user="tester")
    else:
        config = postgres_test_config()
        if config is None:
            pytest.skip("LABRADOR_TEST_PG_DATABASE is not set")
        adapter = PostgresAdapter(config)

    try:
        yield adapter
    finally:
        if adapter.connected():
            for name in FIXTURE_TABLES:
                adapter.execute(f"DROP TABLE IF EXISTS {name}")
        adapter.close()


@pytest.fixture
def adapter(backend: RelationalAdapter) -> RelationalAdapter:
    """An adapter whose database holds the seeded ``users`` collection."""
    seed_users(backend)
    return backend
