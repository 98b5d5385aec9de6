"""Common driver attributes and the statement handle contract shared by adapters."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Final, NamedTuple, Optional

from mypy_extensions import trait

from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE, StatementCache
from sqlprep.core.identifiers import quote_identifier, quote_identifier_path
from sqlprep.exceptions import BindError, ExecutionError, ResultPendingError
from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlprep.core.parameters import BoundParameter
    from sqlprep.driver.mixins._transaction import TransactionState
    from sqlprep.exceptions import DatabaseError

__all__ = ("CommonDriverAttributesMixin", "RawOutcome", "ScriptCursor", "StatementHandle", "normalize_rowcount")

logger = get_logger("driver")

STATEMENT_HANDLE_SLOTS: Final = ("cached", "closed", "placeholder_count", "result_open", "sql")
SCRIPT_CURSOR_SLOTS: Final = ("desynchronized", "script")

# Client-side "row count unknown" sentinels reported by DB-API drivers.
MAX_ROWCOUNT: Final[int] = 2**63 - 1


def normalize_rowcount(rowcount: Any) -> int:
    """Clamp a DB-API ``rowcount`` to a non-negative int, 0 when unknown."""
    if isinstance(rowcount, int) and 0 < rowcount <= MAX_ROWCOUNT:
        return rowcount
    return 0


class RawOutcome(NamedTuple):
    """Driver-level outcome of one executed statement."""

    sql: str
    column_names: "list[str]"
    rows: "list[Any]"
    rowcount: int
    lastrowid: Optional[int]


class StatementHandle(ABC):
    """A compiled statement for one exact SQL text.

    Adapters implement the driver calls; this base enforces the execution
    contract: a closed handle cannot run, a cached handle cannot start a new
    execution while its previous result is still open, and the number of bound
    values must match the placeholders in the statement.
    """

    __slots__ = STATEMENT_HANDLE_SLOTS

    def __init__(self, sql: str, placeholder_count: int) -> None:
        self.sql = sql
        self.placeholder_count = placeholder_count
        self.cached = False
        self.result_open = False
        self.closed = False

    def execute(self, parameters: "Sequence[BoundParameter]") -> None:
        """Run the statement with ``parameters`` bound positionally.

        Raises:
            ExecutionError: The handle has been closed.
            ResultPendingError: The previous result of this handle was not freed.
            BindError: The parameter count does not match the placeholder count.
        """
        if self.closed:
            msg = "Statement handle is closed"
            raise ExecutionError(msg, sql=self.sql)
        if self.result_open:
            msg = "Commands out of sync; the previous result of this statement has not been freed"
            raise ResultPendingError(msg, sql=self.sql)
        if len(parameters) != self.placeholder_count:
            msg = f"Statement expects {self.placeholder_count} parameter(s), {len(parameters)} given"
            raise BindError(msg, sql=self.sql)
        self._execute(tuple(parameter.value for parameter in parameters))

    def release_result(self) -> None:
        """Mark the current result as consumed so the handle can run again."""
        self.result_open = False

    def close(self) -> None:
        """Release the handle. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.result_open = False
        self._close()

    @abstractmethod
    def _execute(self, values: "tuple[Any, ...]") -> None:
        """Execute against the driver with plain positional values."""

    @abstractmethod
    def _close(self) -> None:
        """Release driver resources held by the handle."""

    @abstractmethod
    def fetchall(self) -> "list[Any]":
        """All remaining rows of the last execution, empty when it produced none."""

    @abstractmethod
    def fetchmany(self, size: int) -> "list[Any]":
        """Up to ``size`` further rows of the last execution."""

    @property
    @abstractmethod
    def column_names(self) -> "list[str]":
        """Column names of the last execution's row set, empty when none."""

    @property
    @abstractmethod
    def rowcount(self) -> int:
        """Rows affected by the last execution, never negative."""

    @property
    @abstractmethod
    def lastrowid(self) -> Optional[int]:
        """Auto-generated id of the last insert, ``None`` when there is none."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sql={self.sql!r}, cached={self.cached}, closed={self.closed})"


class ScriptCursor(ABC):
    """Ordered walk over the per-statement outcomes of a multi-statement script.

    ``desynchronized`` is set when a statement fails while later outcomes may
    still be pending on the connection. ``drain()`` discards whatever is left
    and clears the flag; the connection is reusable afterwards.
    """

    __slots__ = SCRIPT_CURSOR_SLOTS

    def __init__(self, script: str) -> None:
        self.script = script
        self.desynchronized = False

    @abstractmethod
    def next_outcome(self) -> Optional[RawOutcome]:
        """Outcome of the next statement, ``None`` once the script is exhausted."""

    def drain(self) -> int:
        """Discard every pending outcome.

        Returns:
            Number of discarded outcomes.
        """
        discarded = self._drain()
        self.desynchronized = False
        return discarded

    @abstractmethod
    def _drain(self) -> int: ...

    def close(self) -> None:
        """Release driver resources held by the cursor."""


@trait
class CommonDriverAttributesMixin:
    """Connection-scoped state shared by all drivers.

    A driver owns the raw connection together with its statement cache, the
    executed-statement counter, the outcome of the last write and the last
    error reported on the connection.
    """

    __slots__ = (
        "_affected_rows",
        "_closed",
        "_last_error",
        "_last_error_code",
        "_last_insert_id",
        "_query_count",
        "_statement_cache",
        "_transaction_state",
        "connection",
    )

    dialect: ClassVar[str] = "generic"
    quote_char: ClassVar[str] = '"'

    connection: Any
    _statement_cache: StatementCache
    _transaction_state: "TransactionState"

    def __init__(self, connection: Any, statement_cache_size: int = DEFAULT_STATEMENT_CACHE_SIZE) -> None:
        """Initialize driver state.

        Args:
            connection: Raw DB-API connection owned by this driver.
            statement_cache_size: Capacity of the prepared statement cache; 0 disables caching.
        """
        self.connection = connection
        self._statement_cache = StatementCache(self._compile_statement, statement_cache_size)
        self._query_count = 0
        self._affected_rows = 0
        self._last_insert_id: Optional[int] = None
        self._last_error: Optional[str] = None
        self._last_error_code = 0
        self._closed = False

    def _compile_statement(self, sql: str) -> StatementHandle:
        raise NotImplementedError

    @property
    def statement_cache(self) -> StatementCache:
        return self._statement_cache

    @property
    def affected_rows(self) -> int:
        """Rows affected by the most recent write."""
        return self._affected_rows

    @property
    def last_insert_id(self) -> Optional[int]:
        """Id generated by the most recent statement, ``None`` when it generated none."""
        return self._last_insert_id

    @property
    def last_error(self) -> Optional[str]:
        """Message of the error raised by the most recent operation, if any."""
        return self._last_error

    @property
    def last_error_code(self) -> int:
        """Code of the error raised by the most recent operation, 0 when none."""
        return self._last_error_code

    @property
    def closed(self) -> bool:
        return self._closed

    def count_queries(self, reset: bool = False) -> int:
        """Number of statements executed on this connection.

        Args:
            reset: Zero the counter after reading it.

        Returns:
            The counter value before any reset.
        """
        count = self._query_count
        if reset:
            self._query_count = 0
        return count

    def set_statement_cache_limit(self, limit: int) -> None:
        """Resize the statement cache; 0 disables caching and releases every handle."""
        self._statement_cache.resize(limit)

    def clear_statement_cache(self) -> None:
        """Release every cached statement handle."""
        self._statement_cache.clear()

    def quote_identifier(self, identifier: str) -> str:
        return quote_identifier(identifier, self.quote_char)

    def quote_identifier_path(self, path: str) -> str:
        return quote_identifier_path(path, self.quote_char)

    def _reset_error_state(self) -> None:
        self._last_error = None
        self._last_error_code = 0

    def _record_error(self, error: "DatabaseError") -> None:
        self._last_error = error.message
        self._last_error_code = error.code or 0

    def _record_outcome(self, rowcount: int, lastrowid: Optional[int]) -> None:
        self._affected_rows = rowcount
        self._last_insert_id = lastrowid or None
