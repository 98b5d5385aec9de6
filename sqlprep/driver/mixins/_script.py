"""Multi-statement script execution."""

from typing import Any

from mypy_extensions import trait

from sqlprep.core.result import ResultSet
from sqlprep.exceptions import DatabaseError
from sqlprep.utils.logging import get_logger

__all__ = ("ScriptExecutionMixin",)

logger = get_logger("driver.script")


@trait
class ScriptExecutionMixin:
    """Run a semicolon-delimited script and collect one result per statement."""

    __slots__ = ()

    def execute_script(self: Any, script: str) -> "list[ResultSet]":
        """Execute every statement of ``script`` in order.

        Scripts are trusted literal SQL: no parameters are bound. When a
        statement fails, the statements before it keep their effects, the
        remaining ones are discarded without running and the failure is raised
        once the connection is back in a clean state.

        Args:
            script: One or more statements separated by ``;``.

        Returns:
            One buffered result per executed statement, in script order.
        """
        self._reset_error_state()
        results: list[ResultSet] = []
        with self.handle_database_exceptions(sql=script):
            cursor = self._open_script_cursor(script)
        try:
            while True:
                try:
                    with self.handle_database_exceptions(sql=script):
                        outcome = cursor.next_outcome()
                except DatabaseError:
                    cursor.desynchronized = True
                    discarded = cursor.drain()
                    logger.debug(
                        "Script failed after %d statement(s); discarded %d pending result(s)", len(results), discarded
                    )
                    raise
                if outcome is None:
                    break
                self._query_count += 1
                self._record_outcome(outcome.rowcount, outcome.lastrowid)
                results.append(ResultSet.from_outcome(outcome))
        finally:
            cursor.close()
        return results
