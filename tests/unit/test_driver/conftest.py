from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from sqlprep.driver import RawOutcome, ScriptCursor, SyncDriverAdapterBase
from sqlprep.exceptions import DatabaseError, ExecutionError


class FakeDriverError(Exception):
    """Stands in for a native DB-API error."""

    def __init__(self, message: str, code: int = 1) -> None:
        super().__init__(message)
        self.code = code


class ListScriptCursor(ScriptCursor):
    def __init__(self, script: str, outcomes: "list[RawOutcome]", fail_at: Optional[int] = None) -> None:
        super().__init__(script)
        self.outcomes = list(outcomes)
        self.fail_at = fail_at
        self.position = 0
        self.drained = 0
        self.closed = False

    def next_outcome(self) -> Optional[RawOutcome]:
        if self.position == self.fail_at:
            self.position += 1
            raise FakeDriverError("statement failed", code=1146)
        if self.position >= len(self.outcomes):
            return None
        outcome = self.outcomes[self.position]
        self.position += 1
        return outcome

    def _drain(self) -> int:
        remaining = max(0, len(self.outcomes) - self.position)
        self.position = len(self.outcomes)
        self.drained += remaining
        return remaining

    def close(self) -> None:
        self.closed = True


class RecordingDriver(SyncDriverAdapterBase):
    """Driver recording transaction calls; individual hooks can be made to fail."""

    native_error_types = (FakeDriverError,)

    def __init__(self) -> None:
        super().__init__(MagicMock(), statement_cache_size=4)
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.script_cursor: Optional[ListScriptCursor] = None

    def _hook(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise FakeDriverError(f"{name} failed", code=2013)

    def _prepare_statement(self, sql: str, streaming: bool = False) -> Any:
        raise NotImplementedError

    def _open_script_cursor(self, script: str) -> ScriptCursor:
        assert self.script_cursor is not None
        return self.script_cursor

    def _execute_direct(self, sql: str) -> RawOutcome:
        raise NotImplementedError

    def _begin(self) -> None:
        self._hook("begin")

    def _commit(self) -> None:
        self._hook("commit")

    def _rollback(self) -> None:
        self._hook("rollback")

    def _close_connection(self) -> None:
        self._hook("close")

    def _map_exception(self, error: BaseException, *, prepare: bool = False, sql: Optional[str] = None) -> DatabaseError:
        return ExecutionError(str(error), code=getattr(error, "code", None), sql=sql)


@pytest.fixture
def driver() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def list_script_cursor() -> "type[ListScriptCursor]":
    return ListScriptCursor
