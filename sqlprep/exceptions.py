from typing import Any, ClassVar, Optional

__all__ = (
    "BindError",
    "CheckViolationError",
    "DataError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DeadlockError",
    "ExecutionError",
    "ForeignKeyViolationError",
    "ImproperConfigurationError",
    "IntegrityError",
    "MissingDependencyError",
    "NotNullViolationError",
    "PermissionDeniedError",
    "PrepareError",
    "ResultPendingError",
    "SQLPrepError",
    "TransactionError",
    "UniqueViolationError",
    "ValidationError",
)


class SQLPrepError(Exception):
    """Base exception class from which all sqlprep exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLPrepError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLPrepError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlprep[{install_package or package}]' to install sqlprep with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLPrepError):
    """Improper Configuration error."""


class ValidationError(SQLPrepError, ValueError):
    """Caller supplied a structurally invalid argument.

    Raised before any SQL is sent to the server: empty batches, rows with
    inconsistent columns, disallowed identifier characters.
    """


class DatabaseError(SQLPrepError):
    """An error reported by the database server or the client protocol.

    Attributes:
        code: Server (or client) error code, ``None`` when the driver supplied none.
        message: The error message as reported.
        sql: The SQL text involved, when known.
    """

    default_code: ClassVar[Optional[int]] = None

    code: Optional[int]
    message: str
    sql: Optional[str]

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        sql: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        if code is None:
            code = self.default_code
        detail_message = message
        if description:
            detail_message = f"{description} [{code}]: {message}" if code is not None else f"{description}: {message}"
        elif code is not None:
            detail_message = f"[{code}] {message}"
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.code = code
        self.message = message
        self.sql = sql


class DatabaseConnectionError(DatabaseError):
    """The connection to the server failed or was lost."""


class PrepareError(DatabaseError):
    """SQL text could not be compiled (syntax, unknown objects, permissions)."""


class ExecutionError(DatabaseError):
    """The server rejected or failed a compiled statement."""


class BindError(ExecutionError):
    """Parameter count or shape does not match the compiled statement."""

    default_code = 2031


class ResultPendingError(ExecutionError):
    """A cached statement was re-executed while its previous result was still open."""

    default_code = 2014


class IntegrityError(ExecutionError):
    """Data integrity constraint violated."""


class UniqueViolationError(IntegrityError):
    """Unique constraint violated."""


class ForeignKeyViolationError(IntegrityError):
    """Foreign key constraint violated."""


class NotNullViolationError(IntegrityError):
    """Not-null constraint violated."""


class CheckViolationError(IntegrityError):
    """Check constraint violated."""


class TransactionError(ExecutionError):
    """Transaction could not proceed."""


class DeadlockError(TransactionError):
    """Deadlock, lock wait timeout or busy database."""


class DataError(ExecutionError):
    """Value out of range or of the wrong type for its column."""


class PermissionDeniedError(ExecutionError):
    """The session is not allowed to perform the operation."""
