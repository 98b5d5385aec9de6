"""Result objects returned by driver operations.

``ResultSet`` buffers every row of one statement outcome. When it was produced
by a cached statement handle it keeps that handle marked as busy until the
result is freed, so the handle cannot be re-executed while rows are pending.

``RowStream`` is a lazy iterator over a never-cached handle which it owns and
releases on exhaustion, on ``close()``, on context exit and on collection.
"""

import contextlib
from collections import deque
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, Callable, ContextManager, Final, Optional

from mypy_extensions import mypyc_attr

from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlprep.driver._common import RawOutcome, StatementHandle

__all__ = ("DEFAULT_STREAM_BATCH_SIZE", "ResultSet", "RowStream")

logger = get_logger("core.result")

DEFAULT_STREAM_BATCH_SIZE: Final[int] = 100

RESULT_SET_SLOTS: Final = (
    "_column_names",
    "_rows",
    "_position",
    "_rows_affected",
    "_last_insert_id",
    "_handle",
    "sql",
)
ROW_STREAM_SLOTS: Final = ("_handle", "_batch_size", "_buffer", "_column_names", "_exception_handler", "sql")


def _to_dicts(column_names: "Sequence[str]", rows: "Sequence[Any]") -> "list[dict[str, Any]]":
    return [row if isinstance(row, dict) else dict(zip(column_names, row)) for row in rows]


@mypyc_attr(allow_interpreted_subclasses=False)
class ResultSet:
    """Buffered outcome of a single statement.

    Args:
        column_names: Result column names; empty for statements without a row set.
        rows: Row tuples (or dicts) in server order.
        rows_affected: Rows inserted, updated or deleted.
        last_insert_id: Auto-generated id of the last insert, if any.
        handle: Cached statement handle to release when this result is freed.
        sql: The statement text.
    """

    __slots__ = RESULT_SET_SLOTS

    def __init__(
        self,
        column_names: "Sequence[str]" = (),
        rows: "Sequence[Any]" = (),
        rows_affected: int = 0,
        last_insert_id: Optional[int] = None,
        handle: "Optional[StatementHandle]" = None,
        sql: Optional[str] = None,
    ) -> None:
        self._column_names = list(column_names)
        self._rows = _to_dicts(self._column_names, rows)
        self._position = 0
        self._rows_affected = rows_affected
        self._last_insert_id = last_insert_id
        self._handle = handle
        self.sql = sql

    @classmethod
    def from_outcome(cls, outcome: "RawOutcome", handle: "Optional[StatementHandle]" = None) -> "ResultSet":
        return cls(
            column_names=outcome.column_names,
            rows=outcome.rows,
            rows_affected=outcome.rowcount,
            last_insert_id=outcome.lastrowid,
            handle=handle,
            sql=outcome.sql,
        )

    @property
    def column_names(self) -> "list[str]":
        return list(self._column_names)

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    @property
    def rows_affected(self) -> int:
        return self._rows_affected

    @property
    def last_insert_id(self) -> Optional[int]:
        return self._last_insert_id

    @property
    def returns_rows(self) -> bool:
        """Whether the statement produced a row set (possibly empty)."""
        return bool(self._column_names)

    @property
    def is_freed(self) -> bool:
        return self._handle is None

    def fetchone(self) -> "Optional[dict[str, Any]]":
        """Return the next row, freeing the result once it is exhausted."""
        if self._position >= len(self._rows):
            self.free()
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetchall(self) -> "list[dict[str, Any]]":
        """Return every remaining row and free the result."""
        rows = self._rows[self._position :]
        self._position = len(self._rows)
        self.free()
        return rows

    def scalar(self) -> Any:
        """First column of the first row, or ``None`` when there are no rows."""
        if not self._rows or not self._column_names:
            return None
        return self._rows[0][self._column_names[0]]

    def free(self) -> None:
        """Release the statement handle. Buffered rows stay readable."""
        if self._handle is not None:
            self._handle.release_result()
            self._handle = None

    def __iter__(self) -> "Iterator[dict[str, Any]]":
        while self._position < len(self._rows):
            row = self._rows[self._position]
            self._position += 1
            yield row
        self.free()

    def __len__(self) -> int:
        return len(self._rows)

    def __enter__(self) -> "ResultSet":
        return self

    def __exit__(self, *_: Any) -> None:
        self.free()

    def __repr__(self) -> str:
        return (
            f"ResultSet(num_rows={len(self._rows)}, rows_affected={self._rows_affected}, "
            f"last_insert_id={self._last_insert_id!r})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class RowStream:
    """Lazy iterator over the rows of an executed, uncached statement handle.

    Rows are pulled from the driver ``batch_size`` at a time. The stream owns
    its handle and closes it on every exit path, including abandoning the
    iteration early.
    """

    __slots__ = ROW_STREAM_SLOTS

    def __init__(
        self,
        handle: "StatementHandle",
        batch_size: int = DEFAULT_STREAM_BATCH_SIZE,
        exception_handler: "Optional[Callable[[], ContextManager[Any]]]" = None,
        sql: Optional[str] = None,
    ) -> None:
        self._handle: Optional[StatementHandle] = handle
        self._batch_size = max(1, batch_size)
        self._buffer: deque[dict[str, Any]] = deque()
        self._column_names = list(handle.column_names)
        self._exception_handler = exception_handler or contextlib.nullcontext
        self.sql = sql

    @property
    def column_names(self) -> "list[str]":
        return list(self._column_names)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __iter__(self) -> "RowStream":
        return self

    def __next__(self) -> "dict[str, Any]":
        if not self._buffer:
            self._fill()
        if not self._buffer:
            raise StopIteration
        return self._buffer.popleft()

    def _fill(self) -> None:
        if self._handle is None:
            return
        try:
            with self._exception_handler():
                batch = self._handle.fetchmany(self._batch_size)
        except BaseException:
            self.close()
            raise
        if not batch:
            self.close()
            return
        self._buffer.extend(_to_dicts(self._column_names, batch))

    def close(self) -> None:
        """Discard pending rows and release the statement handle."""
        self._buffer.clear()
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            logger.debug("Released streaming statement handle")

    def __enter__(self) -> "RowStream":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def __del__(self) -> None:
        with contextlib.suppress(Exception):
            self.close()
