"""Unit tests for SQLite error mapping."""

import sqlite3

import pytest

from sqlprep.adapters.sqlite.core import create_mapped_exception
from sqlprep.exceptions import (
    DatabaseConnectionError,
    DeadlockError,
    ExecutionError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    PrepareError,
    UniqueViolationError,
)


def _error(cls: type, message: str, code: "int | None" = None) -> sqlite3.Error:
    error = cls(message)
    if code is not None:
        error.sqlite_errorcode = code
    return error


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        pytest.param(_error(sqlite3.IntegrityError, "UNIQUE constraint failed: t.a", 2067), UniqueViolationError, id="unique"),
        pytest.param(_error(sqlite3.IntegrityError, "FOREIGN KEY constraint failed", 787), ForeignKeyViolationError, id="fk"),
        pytest.param(_error(sqlite3.IntegrityError, "NOT NULL constraint failed: t.a", 1299), NotNullViolationError, id="notnull"),
        pytest.param(_error(sqlite3.IntegrityError, "constraint failed", 19), IntegrityError, id="constraint"),
        pytest.param(_error(sqlite3.OperationalError, "database is locked", 5), DeadlockError, id="busy"),
        pytest.param(_error(sqlite3.OperationalError, 'near "SELEC": syntax error', 1), PrepareError, id="syntax"),
        pytest.param(_error(sqlite3.OperationalError, "no such table: nope", 1), PrepareError, id="no-table"),
        pytest.param(_error(sqlite3.ProgrammingError, "Cannot operate on a closed database."), DatabaseConnectionError, id="closed"),
        pytest.param(_error(sqlite3.OperationalError, "something else", 1), ExecutionError, id="fallback"),
    ],
)
def test_error_mapping(error: sqlite3.Error, expected: type) -> None:
    mapped = create_mapped_exception(error, sql="SELECT 1")

    assert type(mapped) is expected
    assert mapped.__cause__ is error
    assert mapped.sql == "SELECT 1"


def test_compile_errors_are_prepare_errors() -> None:
    error = _error(sqlite3.OperationalError, "table t has no column named x", 1)

    assert isinstance(create_mapped_exception(error, prepare=True), PrepareError)
    assert type(create_mapped_exception(error)) is ExecutionError


def test_busy_wins_over_prepare() -> None:
    error = _error(sqlite3.OperationalError, "database is locked", 5)

    assert isinstance(create_mapped_exception(error, prepare=True), DeadlockError)
