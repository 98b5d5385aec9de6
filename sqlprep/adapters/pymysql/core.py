"""PyMySQL adapter helpers: error mapping and cursor normalization."""

from typing import Any, Optional

from pymysql import err as pymysql_err

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

__all__ = (
    "build_outcome",
    "column_names",
    "create_mapped_exception",
    "normalize_pymysql_lastrowid",
    "normalize_pymysql_rowcount",
)

MYSQL_ER_DUP_ENTRY = 1062
MYSQL_ER_NO_DEFAULT_FOR_FIELD = 1364
MYSQL_ER_CHECK_CONSTRAINT_VIOLATED = 3819
MYSQL_ER_BAD_FIELD = 1054
MYSQL_ER_PARSE_ERROR = 1064
MYSQL_ER_NO_SUCH_TABLE = 1146
MYSQL_ER_SYNTAX_ERROR = 1149
# Errors meaning the statement text itself cannot be compiled.
MYSQL_COMPILE_CODES = frozenset({MYSQL_ER_BAD_FIELD, MYSQL_ER_PARSE_ERROR, MYSQL_ER_NO_SUCH_TABLE, MYSQL_ER_SYNTAX_ERROR})
MYSQL_FOREIGN_KEY_CODES = frozenset({1216, 1217, 1451, 1452})
MYSQL_NOT_NULL_CODES = frozenset({1048, MYSQL_ER_NO_DEFAULT_FOR_FIELD})
MYSQL_ACCESS_DENIED_CODES = frozenset({1044, 1045, 1142, 1143})
MYSQL_CONNECTION_CODES = frozenset({2002, 2003, 2005, 2006, 2013})
MYSQL_DEADLOCK_CODES = frozenset({1205, 1213})
MYSQL_DATA_CODES = frozenset({1264, 1265, 1366, 1406})
# Statement may compile but the session lacks a privilege (SUPER, etc.).
MYSQL_PERMISSION_CODES = frozenset({1227, 1290})
# Codes from 2000 upward are raised by the client library itself.
MYSQL_CLIENT_ERROR_MIN = 2000


def column_names(cursor: Any) -> "list[str]":
    return [column[0] for column in cursor.description or ()]


def normalize_pymysql_rowcount(cursor: Any) -> int:
    """Normalize rowcount from a PyMySQL cursor, 0 when unknown."""
    return normalize_rowcount(getattr(cursor, "rowcount", 0))


def normalize_pymysql_lastrowid(cursor: Any) -> Optional[int]:
    """Last inserted id, or ``None`` when the statement generated none."""
    last_id = getattr(cursor, "lastrowid", None)
    return last_id if isinstance(last_id, int) and last_id > 0 else None


def build_outcome(cursor: Any, sql: str) -> RawOutcome:
    """Collect the current result set of ``cursor``."""
    names = column_names(cursor)
    rows = list(cursor.fetchall()) if names else []
    rowcount = len(rows) if names else normalize_pymysql_rowcount(cursor)
    return RawOutcome(sql, names, rows, rowcount, normalize_pymysql_lastrowid(cursor))


def _create_mysql_error(
    error: Any, code: "Optional[int]", error_class: "type[DatabaseError]", description: str, sql: Optional[str]
) -> DatabaseError:
    message = error.args[1] if len(error.args) > 1 else str(error)
    exc = error_class(str(message), code=code, sql=sql, description=f"MySQL {description}")
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> DatabaseError:
    """Map a PyMySQL exception to a sqlprep exception.

    PyMySQL has no server-side prepare, so compilation problems (syntax,
    unknown table or column, missing privileges) surface on first execution
    and are recognized by their server error code.

    Args:
        error: The PyMySQL exception to map.
        prepare: The error happened while creating the statement handle.
        sql: Statement text, when known.

    Returns:
        A sqlprep exception with the original error as its cause.
    """
    args = getattr(error, "args", ())
    error_code = args[0] if args and isinstance(args[0], int) else None

    if error_code in MYSQL_CONNECTION_CODES or isinstance(error, pymysql_err.InterfaceError):
        return _create_mysql_error(error, error_code, DatabaseConnectionError, "connection error", sql)
    if error_code in MYSQL_DEADLOCK_CODES:
        return _create_mysql_error(error, error_code, DeadlockError, "lock wait timeout or deadlock", sql)
    if prepare or error_code in MYSQL_COMPILE_CODES:
        return _create_mysql_error(error, error_code, PrepareError, "statement compilation failed", sql)
    if error_code in MYSQL_ACCESS_DENIED_CODES:
        return _create_mysql_error(error, error_code, PrepareError, "access denied", sql)
    if error_code in MYSQL_PERMISSION_CODES:
        return _create_mysql_error(error, error_code, PermissionDeniedError, "permission denied", sql)
    if error_code == MYSQL_ER_DUP_ENTRY:
        return _create_mysql_error(error, error_code, UniqueViolationError, "unique constraint violation", sql)
    if error_code in MYSQL_FOREIGN_KEY_CODES:
        return _create_mysql_error(error, error_code, ForeignKeyViolationError, "foreign key violation", sql)
    if error_code in MYSQL_NOT_NULL_CODES:
        return _create_mysql_error(error, error_code, NotNullViolationError, "not-null constraint violation", sql)
    if error_code == MYSQL_ER_CHECK_CONSTRAINT_VIOLATED:
        return _create_mysql_error(error, error_code, CheckViolationError, "check constraint violation", sql)
    if isinstance(error, pymysql_err.IntegrityError):
        return _create_mysql_error(error, error_code, IntegrityError, "integrity constraint violation", sql)
    if error_code in MYSQL_DATA_CODES or isinstance(error, pymysql_err.DataError):
        return _create_mysql_error(error, error_code, DataError, "data error", sql)
    if isinstance(error, pymysql_err.OperationalError) and error_code is not None and error_code >= MYSQL_CLIENT_ERROR_MIN:
        return _create_mysql_error(error, error_code, DatabaseConnectionError, "client error", sql)
    return _create_mysql_error(error, error_code, ExecutionError, "execution failed", sql)
