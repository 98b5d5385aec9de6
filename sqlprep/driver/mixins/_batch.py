"""Adaptive batch inserts.

Small batches are written with one multi-row ``INSERT``. Batches over the row
or payload limits fall back to a single-row statement executed once per row,
in fixed-size chunks, inside one transaction so the batch stays atomic.

The chunked path opens its own transaction: it must not be called while a
transaction is already active on the connection.
"""

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Final, NamedTuple

from mypy_extensions import trait

from sqlprep.core.parameters import bind_parameters
from sqlprep.exceptions import ValidationError
from sqlprep.utils.logging import get_logger, log_with_context

__all__ = (
    "CHUNK_SIZE",
    "NON_TEXT_VALUE_BYTES",
    "ROW_LIMIT",
    "ROW_OVERHEAD_BYTES",
    "SIZE_LIMIT",
    "BatchInsertMixin",
    "BatchInsertPlan",
    "BatchStrategy",
    "estimate_payload_size",
    "plan_batch_insert",
)

logger = get_logger("driver.batch")

ROW_LIMIT: Final[int] = 1000
SIZE_LIMIT: Final[int] = 4 * 1024 * 1024
CHUNK_SIZE: Final[int] = 1000
NON_TEXT_VALUE_BYTES: Final[int] = 8
# two parentheses and two separators per row group
ROW_OVERHEAD_BYTES: Final[int] = 4


class BatchStrategy(Enum):
    SINGLE_STATEMENT = "single_statement"
    CHUNKED = "chunked"


class BatchInsertPlan(NamedTuple):
    """Column order, size estimate and chosen strategy for one batch."""

    columns: "tuple[str, ...]"
    row_count: int
    estimated_bytes: int
    strategy: BatchStrategy


def _value_size(value: Any) -> int:
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(value)
    return NON_TEXT_VALUE_BYTES


def estimate_payload_size(rows: "Sequence[Mapping[str, Any]]", columns: "Sequence[str]") -> int:
    """Estimate the number of bytes a batch sends to the server."""
    return sum(sum(_value_size(row[column]) for column in columns) + ROW_OVERHEAD_BYTES for row in rows)


def plan_batch_insert(rows: "Sequence[Mapping[str, Any]]") -> BatchInsertPlan:
    """Validate ``rows`` and decide how to insert them.

    Raises:
        ValidationError: Empty batch, non-mapping row or a row whose column set
            differs from the first row's.
    """
    if not rows:
        msg = "Batch insert requires at least one row"
        raise ValidationError(msg)
    first = rows[0]
    if not isinstance(first, Mapping) or not first:
        msg = "Batch insert rows must be non-empty mappings of column name to value"
        raise ValidationError(msg)
    columns = tuple(first)
    expected = frozenset(columns)
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            msg = f"Row {index} is not a mapping"
            raise ValidationError(msg)
        if frozenset(row) != expected:
            msg = f"Row {index} columns {sorted(row)} do not match {sorted(expected)}"
            raise ValidationError(msg)

    row_count = len(rows)
    estimated_bytes = estimate_payload_size(rows, columns)
    if row_count <= ROW_LIMIT and estimated_bytes <= SIZE_LIMIT:
        strategy = BatchStrategy.SINGLE_STATEMENT
    else:
        strategy = BatchStrategy.CHUNKED
    return BatchInsertPlan(columns, row_count, estimated_bytes, strategy)


@trait
class BatchInsertMixin:
    """Bulk insert of homogeneous rows."""

    __slots__ = ()

    def insert_batch(self: Any, table: str, rows: "Sequence[Mapping[str, Any]]") -> int:
        """Insert ``rows`` into ``table``.

        Args:
            table: Table name or dotted path.
            rows: Mappings sharing exactly the same column set.

        Returns:
            Number of inserted rows reported by the server.
        """
        self._reset_error_state()
        rows = list(rows)
        plan = plan_batch_insert(rows)
        quoted_table = self.quote_identifier_path(table)
        column_list = ", ".join(self.quote_identifier(column) for column in plan.columns)
        row_group = "(" + ", ".join("?" for _ in plan.columns) + ")"
        log_with_context(
            logger,
            logging.DEBUG,
            "Planned batch insert",
            table=table,
            rows=plan.row_count,
            estimated_bytes=plan.estimated_bytes,
            strategy=plan.strategy.value,
        )

        if plan.strategy is BatchStrategy.SINGLE_STATEMENT:
            sql = f"INSERT INTO {quoted_table} ({column_list}) VALUES " + ", ".join([row_group] * plan.row_count)
            values = [row[column] for row in rows for column in plan.columns]
            return self.execute_write(sql, values)  # type: ignore[no-any-return]

        sql = f"INSERT INTO {quoted_table} ({column_list}) VALUES {row_group}"
        total = 0
        last_id = None
        self.begin()
        try:
            handle = self._acquire_statement(sql)
            try:
                for start in range(0, plan.row_count, CHUNK_SIZE):
                    for row in rows[start : start + CHUNK_SIZE]:
                        self._run_statement(handle, bind_parameters([row[column] for column in plan.columns]))
                        total += handle.rowcount
                        last_id = handle.lastrowid or last_id
            finally:
                self._release_statement(handle)
        except BaseException:
            self._rollback_after_failure()
            raise
        self._commit_or_roll_back()
        self._record_outcome(total, last_id)
        return total
