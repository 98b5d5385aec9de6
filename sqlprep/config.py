"""Connection configuration base classes."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional

from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE
from sqlprep.exceptions import ImproperConfigurationError
from sqlprep.typing import ConnectionT, DriverT
from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = ("NoPoolSyncConfig",)

logger = get_logger("config")


class NoPoolSyncConfig(ABC, Generic[ConnectionT, DriverT]):
    """Base class for sync configurations that open one dedicated connection per session.

    Args:
        connection_config: Driver-specific connection parameters.
        statement_cache_size: Prepared statement cache capacity of each session; 0 disables caching.

    Raises:
        ImproperConfigurationError: If ``statement_cache_size`` is not a non-negative integer.
    """

    __slots__ = ("connection_config", "statement_cache_size")

    driver_type: "ClassVar[type[Any]]"
    connection_type: "ClassVar[type[Any]]"
    is_async: "ClassVar[bool]" = False
    supports_connection_pooling: "ClassVar[bool]" = False

    def __init__(
        self,
        *,
        connection_config: "Optional[dict[str, Any]]" = None,
        statement_cache_size: int = DEFAULT_STATEMENT_CACHE_SIZE,
    ) -> None:
        if isinstance(statement_cache_size, bool) or not isinstance(statement_cache_size, int) or statement_cache_size < 0:
            msg = f"statement_cache_size must be a non-negative integer, got {statement_cache_size!r}"
            raise ImproperConfigurationError(msg)
        self.connection_config: dict[str, Any] = dict(connection_config or {})
        self.statement_cache_size = statement_cache_size

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return (
            self.connection_config == other.connection_config
            and self.statement_cache_size == other.statement_cache_size
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(connection_config={self.connection_config!r}, "
            f"statement_cache_size={self.statement_cache_size!r})"
        )

    @abstractmethod
    def create_connection(self) -> ConnectionT:
        """Create and return a new raw database connection."""
        raise NotImplementedError

    @contextmanager
    def provide_connection(self, *args: Any, **kwargs: Any) -> "Generator[ConnectionT, None, None]":
        """Provide a raw connection that is closed on exit."""
        connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()  # type: ignore[attr-defined]

    @contextmanager
    def provide_session(self, *args: Any, **kwargs: Any) -> "Generator[DriverT, None, None]":
        """Provide a driver session; cached statements and the connection are released on exit."""
        driver = self.driver_type(self.create_connection(), statement_cache_size=self.statement_cache_size)
        try:
            yield driver
        finally:
            driver.close()
