import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sqlprep.adapters.sqlite import SqliteConfig, SqliteDriver
from sqlprep.exceptions import ImproperConfigurationError


def test_sqlite_config_defaults() -> None:
    config = SqliteConfig()

    assert config.connection_config == {"database": ":memory:", "isolation_level": None}
    assert config.statement_cache_size == 128
    assert config.driver_type is SqliteDriver


def test_sqlite_config_forces_autocommit() -> None:
    config = SqliteConfig(connection_config={"database": ":memory:", "isolation_level": "DEFERRED"})

    assert config.connection_config["isolation_level"] is None


def test_sqlite_config_enables_uri_for_file_urls() -> None:
    config = SqliteConfig(connection_config={"database": "file:memdb1?mode=memory&cache=shared"})

    assert config.connection_config["uri"] is True


def test_sqlite_config_equality() -> None:
    assert SqliteConfig(statement_cache_size=4) == SqliteConfig(statement_cache_size=4)
    assert SqliteConfig(statement_cache_size=4) != SqliteConfig(statement_cache_size=5)
    assert "statement_cache_size=4" in repr(SqliteConfig(statement_cache_size=4))


def test_create_connection_runs_callback() -> None:
    callback = MagicMock()
    config = SqliteConfig(on_connection_create=callback)

    connection = config.create_connection()
    try:
        assert isinstance(connection, sqlite3.Connection)
        assert connection.isolation_level is None
        callback.assert_called_once_with(connection)
    finally:
        connection.close()


def test_provide_session_closes_driver(tmp_path: Path) -> None:
    config = SqliteConfig(connection_config={"database": str(tmp_path / "app.db")}, statement_cache_size=7)

    with config.provide_session() as session:
        assert isinstance(session, SqliteDriver)
        assert session.statement_cache.capacity == 7
        assert session.fetch_value("SELECT 1") == 1
        assert len(session.statement_cache) == 1

    assert session.closed
    assert len(session.statement_cache) == 0


def test_provide_connection_closes_connection() -> None:
    config = SqliteConfig()

    with config.provide_connection() as connection:
        connection.execute("SELECT 1")

    with pytest.raises(sqlite3.ProgrammingError):
        connection.execute("SELECT 1")


@pytest.mark.parametrize("size", [-1, 2.5, True, "8"])
def test_invalid_statement_cache_size_is_rejected(size: object) -> None:
    with pytest.raises(ImproperConfigurationError, match="statement_cache_size"):
        SqliteConfig(statement_cache_size=size)  # type: ignore[arg-type]


def test_zero_statement_cache_size_is_allowed() -> None:
    assert SqliteConfig(statement_cache_size=0).statement_cache_size == 0
