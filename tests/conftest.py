from collections.abc import Generator
from pathlib import Path

import pytest

from sqlprep.adapters.sqlite import SqliteConfig, SqliteDriver

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def sqlite_config() -> SqliteConfig:
    return SqliteConfig(connection_config={"database": ":memory:"})


@pytest.fixture
def sqlite_session(sqlite_config: SqliteConfig) -> Generator[SqliteDriver, None, None]:
    """In-memory SQLite session with a ``users`` table."""
    with sqlite_config.provide_session() as session:
        session.execute_script(
            """
            CREATE TABLE users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                age INTEGER,
                score REAL,
                active INTEGER,
                avatar BLOB
            );
            """
        )
        session.count_queries(reset=True)
        yield session
