"""Integration tests for streamed reads on SQLite."""

import pytest

from sqlprep.adapters.sqlite import SqliteDriver

pytestmark = [pytest.mark.integration, pytest.mark.xdist_group("sqlite")]


@pytest.fixture
def seeded_session(sqlite_session: SqliteDriver) -> SqliteDriver:
    sqlite_session.insert_batch("users", [{"name": f"user-{index}"} for index in range(10)])
    sqlite_session.count_queries(reset=True)
    return sqlite_session


def test_stream_yields_every_row(seeded_session: SqliteDriver) -> None:
    stream = seeded_session.execute_streaming("SELECT name FROM users ORDER BY id", batch_size=3)

    names = [row["name"] for row in stream]

    assert names == [f"user-{index}" for index in range(10)]
    assert stream.closed
    assert stream.column_names == ["name"]


def test_stream_handles_are_never_cached(seeded_session: SqliteDriver) -> None:
    with seeded_session.execute_streaming("SELECT name FROM users") as stream:
        next(stream)

    assert stream.closed
    assert "SELECT name FROM users" not in seeded_session.statement_cache


def test_abandoned_stream_leaves_connection_usable(seeded_session: SqliteDriver) -> None:
    stream = seeded_session.execute_streaming("SELECT id, name FROM users ORDER BY id", batch_size=4)
    taken = []
    for row in stream:
        taken.append(row["id"])
        if len(taken) == 2:
            break
    stream.close()

    assert taken == [1, 2]
    assert stream.closed
    assert seeded_session.fetch_value("SELECT COUNT(*) FROM users") == 10


def test_empty_stream(seeded_session: SqliteDriver) -> None:
    stream = seeded_session.execute_streaming("SELECT name FROM users WHERE id < ?", [0])

    assert list(stream) == []
    assert stream.closed
