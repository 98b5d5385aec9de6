"""Unit tests for ResultSet and RowStream."""

from unittest.mock import MagicMock

import pytest

from sqlprep.core.result import ResultSet, RowStream


@pytest.fixture
def handle() -> MagicMock:
    mock_handle = MagicMock()
    mock_handle.column_names = ["id", "name"]
    return mock_handle


def test_result_set_rows_are_dicts() -> None:
    result = ResultSet(["id", "name"], [(1, "a"), (2, "b")], rows_affected=2)

    assert result.returns_rows
    assert result.num_rows == 2
    assert result.fetchone() == {"id": 1, "name": "a"}
    assert result.fetchall() == [{"id": 2, "name": "b"}]
    assert result.fetchone() is None


def test_result_set_scalar() -> None:
    assert ResultSet(["n"], [(7,), (8,)]).scalar() == 7
    assert ResultSet(["n"], []).scalar() is None
    assert ResultSet().scalar() is None


def test_result_set_without_rows() -> None:
    result = ResultSet(rows_affected=3, last_insert_id=10)

    assert not result.returns_rows
    assert result.rows_affected == 3
    assert result.last_insert_id == 10
    assert list(result) == []


def test_full_iteration_frees_handle(handle: MagicMock) -> None:
    result = ResultSet(["id"], [(1,), (2,)], handle=handle)

    assert [row["id"] for row in result] == [1, 2]

    handle.release_result.assert_called_once_with()
    assert result.is_freed


def test_partial_iteration_keeps_handle(handle: MagicMock) -> None:
    result = ResultSet(["id"], [(1,), (2,)], handle=handle)

    assert result.fetchone() == {"id": 1}

    handle.release_result.assert_not_called()
    assert not result.is_freed


def test_context_exit_frees_once(handle: MagicMock) -> None:
    with ResultSet(["id"], [(1,)], handle=handle) as result:
        assert result.scalar() == 1
    result.free()

    handle.release_result.assert_called_once_with()


def test_row_stream_fetches_in_batches(handle: MagicMock) -> None:
    handle.fetchmany.side_effect = [[(1, "a"), (2, "b")], [(3, "c")], []]

    stream = RowStream(handle, batch_size=2)

    assert [row["id"] for row in stream] == [1, 2, 3]
    assert handle.fetchmany.call_count == 3
    handle.fetchmany.assert_called_with(2)
    handle.close.assert_called_once_with()
    assert stream.closed


def test_row_stream_early_close_releases_handle(handle: MagicMock) -> None:
    handle.fetchmany.return_value = [(1, "a"), (2, "b"), (3, "c")]

    with RowStream(handle) as stream:
        for row in stream:
            if row["id"] == 2:
                break

    handle.close.assert_called_once_with()
    assert list(stream) == []


def test_row_stream_fetch_error_releases_handle(handle: MagicMock) -> None:
    handle.fetchmany.side_effect = RuntimeError("lost")
    stream = RowStream(handle)

    with pytest.raises(RuntimeError, match="lost"):
        next(stream)

    handle.close.assert_called_once_with()


def test_row_stream_released_on_collection(handle: MagicMock) -> None:
    stream = RowStream(handle)

    del stream

    handle.close.assert_called_once_with()
