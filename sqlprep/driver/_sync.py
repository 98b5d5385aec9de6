"""Synchronous driver base implementation."""

import logging
from abc import abstractmethod
from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE
from sqlprep.core.parameters import bind_parameters, wire_type_signature
from sqlprep.core.result import DEFAULT_STREAM_BATCH_SIZE, ResultSet, RowStream
from sqlprep.driver._common import CommonDriverAttributesMixin
from sqlprep.driver.mixins import BatchInsertMixin, ScriptExecutionMixin, TransactionMixin, TransactionState
from sqlprep.exceptions import DatabaseError, ValidationError
from sqlprep.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Generator

    from typing_extensions import Self

    from sqlprep.core.parameters import BoundParameter
    from sqlprep.driver._common import RawOutcome, ScriptCursor, StatementHandle
    from sqlprep.typing import DictRow, RowData, StatementParameters

__all__ = ("SyncDriverAdapterBase",)

logger = get_logger("driver")


class SyncDriverAdapterBase(CommonDriverAttributesMixin, ScriptExecutionMixin, BatchInsertMixin, TransactionMixin):
    """Base class for synchronous drivers.

    Adapters supply statement compilation, direct execution, script cursors,
    transaction control and native error mapping; everything else is shared.
    """

    __slots__ = ()

    native_error_types: ClassVar["tuple[type[BaseException], ...]"] = ()

    def __init__(self, connection: Any, statement_cache_size: int = DEFAULT_STATEMENT_CACHE_SIZE) -> None:
        super().__init__(connection, statement_cache_size)
        self._transaction_state = TransactionState.NONE

    @abstractmethod
    def _prepare_statement(self, sql: str, streaming: bool = False) -> "StatementHandle":
        """Compile ``sql`` into a new statement handle.

        Args:
            sql: Statement text with ``?`` placeholders.
            streaming: The handle will be read lazily and must not buffer its result.
        """

    @abstractmethod
    def _open_script_cursor(self, script: str) -> "ScriptCursor":
        """Create the cursor that walks the outcomes of ``script``."""

    @abstractmethod
    def _execute_direct(self, sql: str) -> "RawOutcome":
        """Execute trusted literal SQL without compiling or caching it."""

    @abstractmethod
    def _begin(self) -> None: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...

    @abstractmethod
    def _close_connection(self) -> None: ...

    @abstractmethod
    def _map_exception(self, error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> DatabaseError:
        """Translate a native driver error into a :class:`DatabaseError`."""

    @contextmanager
    def handle_database_exceptions(self, prepare: bool = False, sql: Optional[str] = None) -> "Generator[None, None, None]":
        """Map native driver errors and record the last error of the connection.

        Args:
            prepare: Errors happen while compiling a statement.
            sql: Statement text attached to mapped errors.
        """
        try:
            yield
        except DatabaseError as error:
            self._record_error(error)
            raise
        except self.native_error_types as error:
            mapped = self._map_exception(error, prepare=prepare, sql=sql)
            self._record_error(mapped)
            raise mapped from error

    def _compile_statement(self, sql: str) -> "StatementHandle":
        with self.handle_database_exceptions(prepare=True, sql=sql):
            handle = self._prepare_statement(sql)
        logger.debug("Compiled statement: %s", sql)
        return handle

    def _acquire_statement(self, sql: str, streaming: bool = False) -> "StatementHandle":
        if streaming:
            with self.handle_database_exceptions(prepare=True, sql=sql):
                return self._prepare_statement(sql, streaming=True)
        return self._statement_cache.acquire(sql)

    def _release_statement(self, handle: "StatementHandle") -> None:
        if not handle.cached:
            handle.close()

    def _run_statement(self, handle: "StatementHandle", parameters: "Sequence[BoundParameter]") -> None:
        with self.handle_database_exceptions(sql=handle.sql):
            handle.execute(parameters)
        self._query_count += 1
        if logger.isEnabledFor(logging.DEBUG):
            log_with_context(
                logger, logging.DEBUG, "Executed statement", sql=handle.sql, parameter_types=wire_type_signature(parameters)
            )

    def _execute_prepared(
        self, sql: str, parameters: "Optional[StatementParameters]", streaming: bool = False
    ) -> "StatementHandle":
        bound = bind_parameters(parameters)
        handle = self._acquire_statement(sql, streaming=streaming)
        try:
            self._run_statement(handle, bound)
        except BaseException:
            self._release_statement(handle)
            raise
        return handle

    def execute_read(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> ResultSet:
        """Execute a statement and buffer its rows.

        When the statement handle is cached, the returned result must be freed
        (fully iterated, ``fetchall()``, ``free()`` or its context exited)
        before the same SQL text can run again.

        Args:
            sql: Statement text with ``?`` placeholders.
            parameters: Positional values.

        Returns:
            The buffered result.
        """
        self._reset_error_state()
        handle = self._execute_prepared(sql, parameters)
        try:
            with self.handle_database_exceptions(sql=sql):
                column_names = handle.column_names
                rows = handle.fetchall()
                rowcount = handle.rowcount
                lastrowid = handle.lastrowid
        except BaseException:
            self._release_statement(handle)
            raise
        self._record_outcome(len(rows) if column_names else rowcount, lastrowid)
        owner = None
        if handle.cached:
            if column_names:
                handle.result_open = True
                owner = handle
        else:
            handle.close()
        return ResultSet(column_names, rows, rowcount, lastrowid, handle=owner, sql=sql)

    def execute_write(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> int:
        """Execute a data-modifying statement.

        Returns:
            Number of rows inserted, updated or deleted.
        """
        rowcount, _ = self._write(sql, parameters)
        return rowcount

    def _write(self, sql: str, parameters: "Optional[StatementParameters]") -> "tuple[int, Optional[int]]":
        self._reset_error_state()
        handle = self._execute_prepared(sql, parameters)
        try:
            rowcount = handle.rowcount
            lastrowid = handle.lastrowid or None
            self._record_outcome(rowcount, lastrowid)
        finally:
            self._release_statement(handle)
        return rowcount, lastrowid

    def execute_streaming(
        self,
        sql: str,
        parameters: "Optional[StatementParameters]" = None,
        batch_size: int = DEFAULT_STREAM_BATCH_SIZE,
    ) -> RowStream:
        """Execute a query on a dedicated, never-cached handle and read it lazily.

        The handle is released when the stream is exhausted, closed, used as a
        context manager and exited, or garbage collected.
        """
        self._reset_error_state()
        handle = self._execute_prepared(sql, parameters, streaming=True)
        try:
            return RowStream(handle, batch_size=batch_size, exception_handler=self.handle_database_exceptions, sql=sql)
        except BaseException:
            handle.close()
            raise

    def fetch_all(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "list[DictRow]":
        """Every row of a query."""
        with self.execute_read(sql, parameters) as result:
            return result.fetchall()

    def fetch_row(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "Optional[DictRow]":
        """First row of a query, or ``None``."""
        with self.execute_read(sql, parameters) as result:
            return result.fetchone()

    def fetch_value(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> Any:
        """First column of the first row of a query, or ``None``."""
        with self.execute_read(sql, parameters) as result:
            return result.scalar()

    def count_rows(
        self, sql_or_result: "Union[str, ResultSet]", parameters: "Optional[StatementParameters]" = None
    ) -> int:
        """Number of rows of a result, or of the rows a query returns."""
        if isinstance(sql_or_result, ResultSet):
            return sql_or_result.num_rows
        with self.execute_read(sql_or_result, parameters) as result:
            return result.num_rows

    def insert(self, table: str, data: "RowData") -> Optional[int]:
        """Insert one row.

        Returns:
            The id generated by this statement, or ``None`` when it generated none.
        """
        columns = self._require_columns(data)
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {self.quote_identifier_path(table)} "
            f"({', '.join(self.quote_identifier(column) for column in columns)}) VALUES ({placeholders})"
        )
        _, lastrowid = self._write(sql, [data[column] for column in columns])
        return lastrowid

    def update(
        self,
        table: str,
        data: "RowData",
        where: str,
        parameters: "Optional[StatementParameters]" = None,
    ) -> int:
        """Update the rows matching ``where``.

        Args:
            table: Table name or dotted path.
            data: Column values to set.
            where: Condition with ``?`` placeholders, bound after the ``data`` values.
            parameters: Values for the condition placeholders.

        Returns:
            Number of updated rows.
        """
        columns = self._require_columns(data)
        assignments = ", ".join(f"{self.quote_identifier(column)} = ?" for column in columns)
        sql = f"UPDATE {self.quote_identifier_path(table)} SET {assignments} WHERE {where}"
        values = [data[column] for column in columns]
        values.extend(self._condition_values(parameters))
        return self.execute_write(sql, values)

    def delete(self, table: str, where: str, parameters: "Optional[StatementParameters]" = None) -> int:
        """Delete the rows matching ``where``.

        Returns:
            Number of deleted rows.
        """
        sql = f"DELETE FROM {self.quote_identifier_path(table)} WHERE {where}"
        return self.execute_write(sql, self._condition_values(parameters))

    def exists(self, table: str, where: str, parameters: "Optional[StatementParameters]" = None) -> bool:
        """Whether at least one row matches ``where``."""
        sql = f"SELECT 1 FROM {self.quote_identifier_path(table)} WHERE {where} LIMIT 1"
        return self.fetch_value(sql, self._condition_values(parameters)) is not None

    def execute_many(self, sql: str, parameter_sets: "Sequence[StatementParameters]") -> int:
        """Execute one statement once per parameter set, reusing a single compiled handle.

        Returns:
            Total number of affected rows.
        """
        self._reset_error_state()
        bound_sets = [bind_parameters(parameters) for parameters in parameter_sets]
        if not bound_sets:
            return 0
        total = 0
        last_id = None
        handle = self._acquire_statement(sql)
        try:
            for bound in bound_sets:
                self._run_statement(handle, bound)
                total += handle.rowcount
                last_id = handle.lastrowid or last_id
        finally:
            self._release_statement(handle)
        self._record_outcome(total, last_id)
        return total

    def execute_raw(self, sql: str) -> ResultSet:
        """Execute trusted literal SQL directly, without compiling, caching or binding."""
        self._reset_error_state()
        with self.handle_database_exceptions(sql=sql):
            outcome = self._execute_direct(sql)
        self._query_count += 1
        self._record_outcome(len(outcome.rows) if outcome.column_names else outcome.rowcount, outcome.lastrowid)
        return ResultSet.from_outcome(outcome)

    def close(self) -> None:
        """Release every cached statement, then close the connection."""
        if self._closed:
            return
        self._closed = True
        try:
            self._statement_cache.clear()
        finally:
            with self.handle_database_exceptions():
                self._close_connection()
        logger.debug("Closed %s connection", self.dialect)

    def __enter__(self) -> "Self":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    @staticmethod
    def _require_columns(data: "Mapping[str, Any]") -> "list[str]":
        if not isinstance(data, Mapping) or not data:
            msg = "Row data must be a non-empty mapping of column name to value"
            raise ValidationError(msg)
        return list(data)

    @staticmethod
    def _condition_values(parameters: "Optional[StatementParameters]") -> "list[Any]":
        if parameters is None:
            return []
        if isinstance(parameters, (str, bytes, bytearray, Mapping)) or not isinstance(parameters, Sequence):
            msg = f"Parameters must be a positional sequence, got {type(parameters).__name__}"
            raise ValidationError(msg)
        return list(parameters)
