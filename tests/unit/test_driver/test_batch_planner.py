"""Unit tests for batch insert planning."""

import pytest

from sqlprep.driver.mixins._batch import (
    NON_TEXT_VALUE_BYTES,
    ROW_LIMIT,
    ROW_OVERHEAD_BYTES,
    SIZE_LIMIT,
    BatchStrategy,
    estimate_payload_size,
    plan_batch_insert,
)
from sqlprep.exceptions import ValidationError


def test_small_batch_uses_single_statement() -> None:
    rows = [{"name": f"user{i}", "age": i} for i in range(5)]

    plan = plan_batch_insert(rows)

    assert plan.strategy is BatchStrategy.SINGLE_STATEMENT
    assert plan.columns == ("name", "age")
    assert plan.row_count == 5


def test_row_limit_boundary() -> None:
    assert plan_batch_insert([{"a": 1}] * ROW_LIMIT).strategy is BatchStrategy.SINGLE_STATEMENT
    assert plan_batch_insert([{"a": 1}] * (ROW_LIMIT + 1)).strategy is BatchStrategy.CHUNKED


def test_large_payload_uses_chunked_path() -> None:
    rows = [{"blob": "x" * (SIZE_LIMIT // 2)} for _ in range(3)]

    plan = plan_batch_insert(rows)

    assert plan.row_count == 3
    assert plan.strategy is BatchStrategy.CHUNKED


def test_estimate_charges_text_by_utf8_length() -> None:
    rows = [{"name": "é", "age": 30, "data": b"abc"}]

    size = estimate_payload_size(rows, ("name", "age", "data"))

    assert size == 2 + NON_TEXT_VALUE_BYTES + 3 + ROW_OVERHEAD_BYTES


def test_column_order_follows_first_row() -> None:
    plan = plan_batch_insert([{"b": 1, "a": 2}, {"a": 3, "b": 4}])

    assert plan.columns == ("b", "a")


@pytest.mark.parametrize(
    "rows",
    [
        pytest.param([], id="empty"),
        pytest.param([{}], id="empty-row"),
        pytest.param([{"a": 1}, {"a": 1, "b": 2}], id="extra-column"),
        pytest.param([{"a": 1, "b": 2}, {"a": 1}], id="missing-column"),
        pytest.param([{"a": 1}, {"b": 1}], id="different-column"),
        pytest.param([{"a": 1}, ("a", 1)], id="not-a-mapping"),
    ],
)
def test_invalid_batches_are_rejected(rows: list) -> None:
    with pytest.raises(ValidationError):
        plan_batch_insert(rows)
