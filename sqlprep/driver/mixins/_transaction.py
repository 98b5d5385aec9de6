"""Transaction coordination for synchronous drivers."""

from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from mypy_extensions import trait

from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = ("TransactionMixin", "TransactionState")

logger = get_logger("driver.transaction")

T = TypeVar("T")


class TransactionState(Enum):
    """Logical transaction state of a connection."""

    NONE = "none"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@trait
class TransactionMixin:
    """Begin/commit/rollback primitives and scoped all-or-nothing units of work.

    Transactions do not nest. Beginning while a transaction is already active
    is a caller error that is left to the database to report.
    """

    __slots__ = ()

    @property
    def transaction_state(self: Any) -> TransactionState:
        return self._transaction_state  # type: ignore[no-any-return]

    @property
    def in_transaction(self: Any) -> bool:
        return self._transaction_state is TransactionState.ACTIVE  # type: ignore[no-any-return]

    def begin(self: Any) -> None:
        """Begin a database transaction."""
        self._reset_error_state()
        with self.handle_database_exceptions():
            self._begin()
        self._transaction_state = TransactionState.ACTIVE

    def commit(self: Any) -> None:
        """Commit the current transaction."""
        self._reset_error_state()
        with self.handle_database_exceptions():
            self._commit()
        self._transaction_state = TransactionState.COMMITTED

    def rollback(self: Any) -> None:
        """Roll back the current transaction."""
        self._reset_error_state()
        with self.handle_database_exceptions():
            self._rollback()
        self._transaction_state = TransactionState.ROLLED_BACK

    def run_in_transaction(self: Any, callback: "Callable[[Any], T]") -> T:
        """Run ``callback(driver)`` inside a transaction.

        The transaction is committed when the callback returns. If it raises,
        the transaction is rolled back and the original exception propagates
        unchanged; a failing rollback is logged and never replaces it.

        Args:
            callback: Unit of work receiving this driver.

        Returns:
            Whatever the callback returns.
        """
        self.begin()
        try:
            result = callback(self)
        except BaseException:
            self._rollback_after_failure()
            raise
        self._commit_or_roll_back()
        return result  # type: ignore[no-any-return]

    @contextmanager
    def transaction(self: Any) -> "Generator[Any, None, None]":
        """Context manager form of :meth:`run_in_transaction`, yielding the driver."""
        self.begin()
        try:
            yield self
        except BaseException:
            self._rollback_after_failure()
            raise
        self._commit_or_roll_back()

    def _commit_or_roll_back(self: Any) -> None:
        try:
            self.commit()
        except BaseException:
            self._rollback_after_failure()
            raise

    def _rollback_after_failure(self: Any) -> None:
        last_error, last_error_code = self._last_error, self._last_error_code
        try:
            self.rollback()
        except Exception:
            logger.exception("Rollback failed while handling an earlier error")
            self._transaction_state = TransactionState.ROLLED_BACK
        else:
            logger.debug("Transaction rolled back after failure")
        finally:
            self._last_error, self._last_error_code = last_error, last_error_code
