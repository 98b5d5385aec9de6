"""SQLite adapter helpers: error mapping and outcome collection."""

import sqlite3
from typing import Any, Optional

from sqlprep.driver._common import RawOutcome, normalize_rowcount
from sqlprep.exceptions import (
    CheckViolationError,
    DatabaseConnectionError,
    DatabaseError,
    DataError,
    DeadlockError,
    ExecutionError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    PermissionDeniedError,
    PrepareError,
    UniqueViolationError,
)

__all__ = ("build_outcome", "column_names", "create_mapped_exception", "resolve_lastrowid")

SQLITE_ERROR_CODE = 1
SQLITE_CONSTRAINT_UNIQUE_CODE = 2067
SQLITE_CONSTRAINT_PRIMARYKEY_CODE = 1555
SQLITE_CONSTRAINT_FOREIGNKEY_CODE = 787
SQLITE_CONSTRAINT_NOTNULL_CODE = 1299
SQLITE_CONSTRAINT_CHECK_CODE = 275
SQLITE_CONSTRAINT_CODE = 19
SQLITE_CANTOPEN_CODE = 14
SQLITE_IOERR_CODE = 10
SQLITE_MISMATCH_CODE = 20
SQLITE_BUSY_CODE = 5
SQLITE_LOCKED_CODE = 6
SQLITE_PERM_CODE = 3
SQLITE_READONLY_CODE = 8
SQLITE_AUTH_CODE = 23
SQLITE_TOOBIG_CODE = 18
SQLITE_RANGE_CODE = 25

# Extended codes carry the primary code in their low byte.
PRIMARY_CODE_MASK = 0xFF

_PREPARE_MESSAGE_MARKERS = ("syntax error", "no such table", "no such column", "no such function", "incomplete input")


def column_names(cursor: Any) -> "list[str]":
    return [column[0] for column in cursor.description or ()]


def resolve_lastrowid(cursor: Any) -> Optional[int]:
    lastrowid = getattr(cursor, "lastrowid", None)
    return lastrowid or None


def build_outcome(cursor: "sqlite3.Cursor", sql: str) -> RawOutcome:
    """Collect rows and counters of a statement just executed on ``cursor``."""
    names = column_names(cursor)
    rows = cursor.fetchall() if names else []
    return RawOutcome(sql, names, rows, normalize_rowcount(cursor.rowcount), resolve_lastrowid(cursor))


def _create_sqlite_error(
    error: Any, code: "Optional[int]", error_class: "type[DatabaseError]", description: str, sql: Optional[str]
) -> DatabaseError:
    exc = error_class(str(error), code=code, sql=sql, description=f"SQLite {description}")
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> DatabaseError:
    """Map a ``sqlite3`` exception to a sqlprep exception.

    This is a factory function that returns an exception instance rather than
    raising it, so it can be used from ``except`` blocks and ``__exit__``.

    Mapping priority:
    1. Busy/locked conditions, which can happen at any stage
    2. Compilation failures when ``prepare`` is set
    3. SQLite extended error codes
    4. Error message patterns

    Args:
        error: The SQLite exception to map.
        prepare: The error happened while compiling the statement.
        sql: Statement text, when known.

    Returns:
        A sqlprep exception with the original error as its cause.
    """
    error_code: Optional[int] = getattr(error, "sqlite_errorcode", None)
    primary_code = error_code & PRIMARY_CODE_MASK if error_code is not None else None
    error_msg = str(error).lower()

    if primary_code in {SQLITE_BUSY_CODE, SQLITE_LOCKED_CODE} or "database is locked" in error_msg:
        return _create_sqlite_error(error, error_code, DeadlockError, "database locked", sql)

    if "closed database" in error_msg or primary_code == SQLITE_CANTOPEN_CODE:
        return _create_sqlite_error(error, error_code, DatabaseConnectionError, "connection error", sql)

    if prepare:
        return _create_sqlite_error(error, error_code, PrepareError, "statement compilation failed", sql)

    if error_code in {SQLITE_CONSTRAINT_UNIQUE_CODE, SQLITE_CONSTRAINT_PRIMARYKEY_CODE} or (
        "unique constraint" in error_msg
    ):
        return _create_sqlite_error(error, error_code, UniqueViolationError, "unique constraint violation", sql)
    if error_code == SQLITE_CONSTRAINT_FOREIGNKEY_CODE or "foreign key constraint" in error_msg:
        return _create_sqlite_error(error, error_code, ForeignKeyViolationError, "foreign key violation", sql)
    if error_code == SQLITE_CONSTRAINT_NOTNULL_CODE or "not null constraint" in error_msg:
        return _create_sqlite_error(error, error_code, NotNullViolationError, "not-null constraint violation", sql)
    if error_code == SQLITE_CONSTRAINT_CHECK_CODE or "check constraint" in error_msg:
        return _create_sqlite_error(error, error_code, CheckViolationError, "check constraint violation", sql)
    if primary_code == SQLITE_CONSTRAINT_CODE or isinstance(error, sqlite3.IntegrityError):
        return _create_sqlite_error(error, error_code, IntegrityError, "integrity constraint violation", sql)

    if primary_code in {SQLITE_PERM_CODE, SQLITE_READONLY_CODE, SQLITE_AUTH_CODE} or "readonly" in error_msg:
        return _create_sqlite_error(error, error_code, PermissionDeniedError, "permission denied", sql)

    if primary_code in {SQLITE_MISMATCH_CODE, SQLITE_TOOBIG_CODE, SQLITE_RANGE_CODE} or isinstance(
        error, sqlite3.DataError
    ):
        return _create_sqlite_error(error, error_code, DataError, "data error", sql)

    if any(marker in error_msg for marker in _PREPARE_MESSAGE_MARKERS):
        return _create_sqlite_error(error, error_code, PrepareError, "statement compilation failed", sql)

    if primary_code == SQLITE_IOERR_CODE:
        return _create_sqlite_error(error, error_code, DatabaseConnectionError, "I/O error", sql)

    return _create_sqlite_error(error, error_code, ExecutionError, "execution failed", sql)
