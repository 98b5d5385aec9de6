"""SQLite driver implementation."""

import sqlite3
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from sqlprep.adapters.sqlite.core import build_outcome, column_names, create_mapped_exception, resolve_lastrowid
from sqlprep.core.splitter import count_placeholders, leading_keyword, split_sql_script
from sqlprep.driver import RawOutcome, ScriptCursor, StatementHandle, SyncDriverAdapterBase
from sqlprep.driver._common import normalize_rowcount

if TYPE_CHECKING:
    from sqlprep.exceptions import DatabaseError

__all__ = ("SqliteConnection", "SqliteDriver", "SqliteScriptCursor", "SqliteStatementHandle")

SqliteConnection = sqlite3.Connection


class SqliteStatementHandle(StatementHandle):
    """A compiled SQLite statement bound to its own cursor."""

    __slots__ = ("_cursor",)

    def __init__(self, connection: SqliteConnection, sql: str, placeholder_count: int) -> None:
        super().__init__(sql, placeholder_count)
        self._cursor = connection.cursor()

    def _execute(self, values: "tuple[Any, ...]") -> None:
        self._cursor.execute(self.sql, values)

    def _close(self) -> None:
        self._cursor.close()

    def fetchall(self) -> "list[Any]":
        if self._cursor.description is None:
            return []
        return self._cursor.fetchall()

    def fetchmany(self, size: int) -> "list[Any]":
        if self._cursor.description is None:
            return []
        return self._cursor.fetchmany(size)

    @property
    def column_names(self) -> "list[str]":
        return column_names(self._cursor)

    @property
    def rowcount(self) -> int:
        return normalize_rowcount(self._cursor.rowcount)

    @property
    def lastrowid(self) -> Optional[int]:
        return resolve_lastrowid(self._cursor)


class SqliteScriptCursor(ScriptCursor):
    """Runs a split script one statement at a time on a dedicated cursor."""

    __slots__ = ("_cursor", "_pending")

    def __init__(self, connection: SqliteConnection, script: str) -> None:
        super().__init__(script)
        self._pending = split_sql_script(script, dialect="sqlite", strip_trailing_terminator=True)
        self._pending.reverse()
        self._cursor = connection.cursor()

    def next_outcome(self) -> Optional[RawOutcome]:
        if not self._pending:
            return None
        statement = self._pending.pop()
        self._cursor.execute(statement)
        return build_outcome(self._cursor, statement)

    def _drain(self) -> int:
        discarded = len(self._pending)
        self._pending.clear()
        return discarded

    def close(self) -> None:
        self._cursor.close()


class SqliteDriver(SyncDriverAdapterBase):
    """Synchronous SQLite driver.

    Statements are compiled by preparing ``EXPLAIN <sql>``, which runs the
    SQLite compiler without executing the statement, so invalid SQL is rejected
    before a handle is created. Statements that already start with ``EXPLAIN``
    are compiled as they are. The connection is expected to be in autocommit
    mode (``isolation_level=None``) so transactions are controlled explicitly.
    """

    __slots__ = ()

    dialect: ClassVar[str] = "sqlite"
    quote_char: ClassVar[str] = '"'
    native_error_types: ClassVar["tuple[type[BaseException], ...]"] = (sqlite3.Error,)

    def _prepare_statement(self, sql: str, streaming: bool = False) -> SqliteStatementHandle:
        placeholder_count = count_placeholders(sql, dialect=self.dialect)
        # EXPLAIN only compiles its statement, so it can be checked as is
        compile_sql = sql if leading_keyword(sql, dialect=self.dialect) == "EXPLAIN" else f"EXPLAIN {sql}"
        self.connection.execute(compile_sql, (None,) * placeholder_count).close()
        return SqliteStatementHandle(self.connection, sql, placeholder_count)

    def _open_script_cursor(self, script: str) -> SqliteScriptCursor:
        return SqliteScriptCursor(self.connection, script)

    def _execute_direct(self, sql: str) -> RawOutcome:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            return build_outcome(cursor, sql)
        finally:
            cursor.close()

    def _begin(self) -> None:
        self.connection.execute("BEGIN")

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        self.connection.rollback()

    def _close_connection(self) -> None:
        self.connection.close()

    def _map_exception(self, error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> "DatabaseError":
        return create_mapped_exception(error, prepare=prepare, sql=sql)
