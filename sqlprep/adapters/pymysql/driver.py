"""PyMySQL driver implementation."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional

import pymysql
from pymysql.connections import Connection
from pymysql.cursors import Cursor, SSCursor

from sqlprep.adapters.pymysql.core import (
    build_outcome,
    column_names,
    create_mapped_exception,
    normalize_pymysql_lastrowid,
    normalize_pymysql_rowcount,
)
from sqlprep.core.splitter import convert_placeholders_to_format
from sqlprep.driver import RawOutcome, ScriptCursor, StatementHandle, SyncDriverAdapterBase
from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlprep.exceptions import DatabaseError

__all__ = ("PyMysqlConnection", "PyMysqlDriver", "PyMysqlScriptCursor", "PyMysqlStatementHandle")

logger = get_logger("adapters.pymysql")

PyMysqlConnection = Connection


class PyMysqlStatementHandle(StatementHandle):
    """A statement bound to its own PyMySQL cursor.

    ``?`` placeholders are rewritten to the driver's ``%s`` format style once,
    when the handle is created. Streaming handles use an unbuffered cursor.
    """

    __slots__ = ("_cursor", "_query")

    def __init__(self, connection: PyMysqlConnection, sql: str, streaming: bool = False) -> None:
        query, placeholder_count = convert_placeholders_to_format(sql, dialect="mysql")
        super().__init__(sql, placeholder_count)
        self._query = query
        self._cursor = connection.cursor(SSCursor if streaming else Cursor)

    def _execute(self, values: "tuple[Any, ...]") -> None:
        # always pass a tuple so escaped "%%" is collapsed back to "%"
        self._cursor.execute(self._query, values)

    def _close(self) -> None:
        self._cursor.close()

    def fetchall(self) -> "list[Any]":
        if self._cursor.description is None:
            return []
        return list(self._cursor.fetchall())

    def fetchmany(self, size: int) -> "list[Any]":
        if self._cursor.description is None:
            return []
        return list(self._cursor.fetchmany(size))

    @property
    def column_names(self) -> "list[str]":
        return column_names(self._cursor)

    @property
    def rowcount(self) -> int:
        return normalize_pymysql_rowcount(self._cursor)

    @property
    def lastrowid(self) -> Optional[int]:
        return normalize_pymysql_lastrowid(self._cursor)


class PyMysqlScriptCursor(ScriptCursor):
    """Sends a whole script in one round trip and walks its result sets.

    Requires a connection opened with ``CLIENT.MULTI_STATEMENTS``.
    """

    __slots__ = ("_cursor", "_started")

    def __init__(self, connection: PyMysqlConnection, script: str) -> None:
        super().__init__(script)
        self._cursor = connection.cursor(Cursor)
        self._started = False

    def next_outcome(self) -> Optional[RawOutcome]:
        if not self._started:
            self._started = True
            self._cursor.execute(self.script)
        elif not self._cursor.nextset():
            return None
        return build_outcome(self._cursor, self.script)

    def _drain(self) -> int:
        discarded = 0
        while True:
            try:
                if not self._cursor.nextset():
                    break
            except pymysql.MySQLError as error:
                logger.debug("Error while draining pending results: %s", error)
                break
            discarded += 1
        return discarded

    def close(self) -> None:
        self._cursor.close()


class PyMysqlDriver(SyncDriverAdapterBase):
    """Synchronous MySQL driver backed by PyMySQL.

    PyMySQL does not expose server-side prepared statements: a handle is the
    converted statement text plus a dedicated cursor, and SQL errors surface
    on first execution rather than at compile time.
    """

    __slots__ = ()

    dialect: ClassVar[str] = "mysql"
    quote_char: ClassVar[str] = "`"
    native_error_types: ClassVar["tuple[type[BaseException], ...]"] = (pymysql.MySQLError,)

    def _prepare_statement(self, sql: str, streaming: bool = False) -> PyMysqlStatementHandle:
        return PyMysqlStatementHandle(self.connection, sql, streaming=streaming)

    def _open_script_cursor(self, script: str) -> PyMysqlScriptCursor:
        return PyMysqlScriptCursor(self.connection, script)

    def _execute_direct(self, sql: str) -> RawOutcome:
        with self.connection.cursor(Cursor) as cursor:
            cursor.execute(sql)
            return build_outcome(cursor, sql)

    def _begin(self) -> None:
        self.connection.begin()

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        self.connection.rollback()

    def _close_connection(self) -> None:
        if self.connection.open:
            self.connection.close()

    def _map_exception(self, error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> "DatabaseError":
        return create_mapped_exception(error, prepare=prepare, sql=sql)
