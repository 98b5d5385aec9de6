"""Integration tests for the SQLite driver helpers."""

import logging
import sqlite3
import sys

import pytest

from sqlprep.adapters.sqlite import SqliteDriver
from sqlprep.core.result import ResultSet
from sqlprep.exceptions import (
    BindError,
    DatabaseConnectionError,
    PrepareError,
    ResultPendingError,
    UniqueViolationError,
    ValidationError,
)

pytestmark = [pytest.mark.integration, pytest.mark.xdist_group("sqlite")]


def test_insert_returns_generated_id(sqlite_session: SqliteDriver) -> None:
    first = sqlite_session.insert("users", {"name": "alice", "age": 30})
    second = sqlite_session.insert("users", {"name": "bob", "age": 25})

    assert first == 1
    assert second == 2
    assert sqlite_session.last_insert_id == 2
    assert sqlite_session.affected_rows == 1


def test_fetch_helpers(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice", "age": 30})
    sqlite_session.insert("users", {"name": "bob", "age": 25})

    rows = sqlite_session.fetch_all("SELECT name, age FROM users ORDER BY id")
    assert rows == [{"name": "alice", "age": 30}, {"name": "bob", "age": 25}]
    assert sqlite_session.fetch_row("SELECT name FROM users WHERE age > ?", [26]) == {"name": "alice"}
    assert sqlite_session.fetch_row("SELECT name FROM users WHERE age > ?", [99]) is None
    assert sqlite_session.fetch_value("SELECT COUNT(*) FROM users") == 2
    assert sqlite_session.count_rows("SELECT * FROM users WHERE age < ?", [40]) == 2


def test_update_delete_exists(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice", "age": 30})

    assert sqlite_session.update("users", {"age": 31}, "name = ?", ["alice"]) == 1
    assert sqlite_session.fetch_value("SELECT age FROM users WHERE name = ?", ["alice"]) == 31
    assert sqlite_session.update("users", {"age": 1}, "name = ?", ["nobody"]) == 0
    assert sqlite_session.exists("users", "name = ?", ["alice"])
    assert sqlite_session.delete("users", "name = ?", ["alice"]) == 1
    assert not sqlite_session.exists("users", "name = ?", ["alice"])


def test_values_round_trip(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert(
        "users",
        {"name": "zoë", "age": None, "score": 1.5, "active": True, "avatar": b"\x00\x01\xff"},
    )

    row = sqlite_session.fetch_row("SELECT name, age, score, active, avatar FROM users")

    assert row == {"name": "zoë", "age": None, "score": 1.5, "active": 1, "avatar": b"\x00\x01\xff"}


def test_execute_read_result_set(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice"})

    with sqlite_session.execute_read("SELECT id, name FROM users") as result:
        assert isinstance(result, ResultSet)
        assert result.column_names == ["id", "name"]
        assert result.returns_rows
        assert sqlite_session.count_rows(result) == 1
        assert result.fetchone() == {"id": 1, "name": "alice"}

    assert result.is_freed


def test_execute_many_reuses_one_statement(sqlite_session: SqliteDriver) -> None:
    affected = sqlite_session.execute_many("INSERT INTO users (name) VALUES (?)", [["a"], ["b"], ["c"]])

    assert affected == 3
    assert sqlite_session.count_queries() == 3
    assert sqlite_session.statement_cache.keys() == ["INSERT INTO users (name) VALUES (?)"]
    assert sqlite_session.execute_many("INSERT INTO users (name) VALUES (?)", []) == 0


def test_execute_raw(sqlite_session: SqliteDriver) -> None:
    sqlite_session.execute_raw("INSERT INTO users (name) VALUES ('raw')")
    result = sqlite_session.execute_raw("SELECT name FROM users")

    assert result.fetchall() == [{"name": "raw"}]
    assert sqlite_session.count_queries() == 2
    assert len(sqlite_session.statement_cache) == 0


def test_query_counter(sqlite_session: SqliteDriver) -> None:
    sqlite_session.fetch_value("SELECT 1")
    sqlite_session.fetch_value("SELECT 1")

    assert sqlite_session.count_queries(reset=True) == 2
    assert sqlite_session.count_queries() == 0


def test_compile_error_is_prepare_error(sqlite_session: SqliteDriver) -> None:
    with pytest.raises(PrepareError) as exc_info:
        sqlite_session.execute_read("SELECT * FROM missing_table")

    assert exc_info.value.sql == "SELECT * FROM missing_table"
    assert "no such table" in (sqlite_session.last_error or "")
    assert sqlite_session.count_queries() == 0


def test_parameter_count_mismatch(sqlite_session: SqliteDriver) -> None:
    with pytest.raises(BindError):
        sqlite_session.fetch_value("SELECT name FROM users WHERE id = ?", [])

    assert sqlite_session.last_error_code == 2031
    assert sqlite_session.fetch_value("SELECT name FROM users WHERE id = ?", [1]) is None
    assert sqlite_session.last_error is None


def test_unfreed_result_blocks_same_statement(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice"})
    result = sqlite_session.execute_read("SELECT name FROM users")

    with pytest.raises(ResultPendingError):
        sqlite_session.execute_read("SELECT name FROM users")
    assert sqlite_session.last_error_code == 2014

    result.free()
    assert sqlite_session.fetch_all("SELECT name FROM users") == [{"name": "alice"}]


def test_unique_violation(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice"})

    with pytest.raises(UniqueViolationError):
        sqlite_session.insert("users", {"name": "alice"})

    assert "UNIQUE constraint failed" in (sqlite_session.last_error or "")
    assert sqlite_session.fetch_value("SELECT COUNT(*) FROM users") == 1


@pytest.mark.skipif(sys.version_info < (3, 11), reason="sqlite3 exposes error codes from Python 3.11")
def test_unique_violation_error_code(sqlite_session: SqliteDriver) -> None:
    sqlite_session.insert("users", {"name": "alice"})

    with pytest.raises(UniqueViolationError) as exc_info:
        sqlite_session.insert("users", {"name": "alice"})

    assert exc_info.value.code == 2067
    assert sqlite_session.last_error_code == 2067


def test_invalid_identifiers_are_rejected(sqlite_session: SqliteDriver) -> None:
    with pytest.raises(ValidationError):
        sqlite_session.insert("users; DROP TABLE users", {"name": "x"})
    with pytest.raises(ValidationError):
        sqlite_session.insert("users", {"name) VALUES ('x'); --": "x"})
    with pytest.raises(ValidationError):
        sqlite_session.insert("users", {})

    assert sqlite_session.count_queries() == 0


def test_closed_driver_rejects_operations() -> None:
    driver = SqliteDriver(sqlite3.connect(":memory:", isolation_level=None))
    driver.fetch_value("SELECT 1")

    driver.close()
    driver.close()

    assert driver.closed
    assert len(driver.statement_cache) == 0
    with pytest.raises(DatabaseConnectionError):
        driver.fetch_value("SELECT 1")


def test_explain_statements_are_compiled_as_is(sqlite_session: SqliteDriver) -> None:
    plan = sqlite_session.fetch_all("EXPLAIN QUERY PLAN SELECT * FROM users WHERE id = ?", [1])

    assert plan
    assert "detail" in plan[0]
    assert sqlite_session.statement_cache.keys() == ["EXPLAIN QUERY PLAN SELECT * FROM users WHERE id = ?"]

    with pytest.raises(PrepareError):
        sqlite_session.fetch_all("EXPLAIN QUERY PLAN SELECT * FROM missing_table")


def test_executed_statement_logs_parameter_types(sqlite_session: SqliteDriver, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="sqlprep.driver"):
        sqlite_session.fetch_all("SELECT * FROM users WHERE id = ? AND name = ? AND score > ?", [1, "a", 0.5])

    records = [record for record in caplog.records if record.getMessage() == "Executed statement"]
    assert records[-1].extra_fields["parameter_types"] == "isd"  # type: ignore[attr-defined]
