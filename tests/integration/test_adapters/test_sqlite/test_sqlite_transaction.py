"""Integration tests for transactions on SQLite."""

import pytest

from sqlprep.adapters.sqlite import SqliteDriver
from sqlprep.driver.mixins import TransactionState
from sqlprep.exceptions import UniqueViolationError

pytestmark = [pytest.mark.integration, pytest.mark.xdist_group("sqlite")]


def _count(session: SqliteDriver) -> int:
    return int(session.fetch_value("SELECT COUNT(*) FROM users"))


def test_manual_commit(sqlite_session: SqliteDriver) -> None:
    sqlite_session.begin()
    assert sqlite_session.in_transaction
    sqlite_session.insert("users", {"name": "alice"})
    sqlite_session.commit()

    assert sqlite_session.transaction_state is TransactionState.COMMITTED
    assert _count(sqlite_session) == 1


def test_manual_rollback(sqlite_session: SqliteDriver) -> None:
    sqlite_session.begin()
    sqlite_session.insert("users", {"name": "alice"})
    sqlite_session.rollback()

    assert sqlite_session.transaction_state is TransactionState.ROLLED_BACK
    assert not sqlite_session.in_transaction
    assert _count(sqlite_session) == 0


def test_run_in_transaction_commits(sqlite_session: SqliteDriver) -> None:
    def work(session: SqliteDriver) -> "int | None":
        session.insert("users", {"name": "alice"})
        return session.insert("users", {"name": "bob"})

    assert sqlite_session.run_in_transaction(work) == 2
    assert _count(sqlite_session) == 2


def test_run_in_transaction_rolls_back_and_reraises(sqlite_session: SqliteDriver) -> None:
    error = RuntimeError("boom")

    def work(session: SqliteDriver) -> None:
        session.insert("users", {"name": "alice"})
        raise error

    with pytest.raises(RuntimeError) as exc_info:
        sqlite_session.run_in_transaction(work)

    assert exc_info.value is error
    assert sqlite_session.transaction_state is TransactionState.ROLLED_BACK
    assert _count(sqlite_session) == 0


def test_database_error_inside_transaction_keeps_error_state(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice"})

    def work(session: SqliteDriver) -> None:
        session.insert("users", {"name": "bob"})
        session.insert("users", {"name": "alice"})

    with pytest.raises(UniqueViolationError):
        sqlite_session.run_in_transaction(work)

    assert "UNIQUE constraint failed" in (sqlite_session.last_error or "")
    assert sqlite_session.fetch_all("SELECT name FROM users") == [{"name": "alice"}]


def test_transaction_context_manager(sqlite_session: SqliteDriver) -> None:
    with sqlite_session.transaction() as session:
        session.insert("users", {"name": "alice"})

    with pytest.raises(ValueError, match="stop"), sqlite_session.transaction() as session:
        session.insert("users", {"name": "bob"})
        raise ValueError("stop")

    assert sqlite_session.fetch_all("SELECT name FROM users") == [{"name": "alice"}]
