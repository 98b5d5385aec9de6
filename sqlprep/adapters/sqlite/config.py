"""SQLite database configuration."""

import sqlite3
from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

from typing_extensions import NotRequired

from sqlprep.adapters.sqlite.driver import SqliteConnection, SqliteDriver
from sqlprep.config import NoPoolSyncConfig
from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE
from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("adapters.sqlite")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


__all__ = ("SqliteConfig", "SqliteConnectionParams")


class SqliteConfig(NoPoolSyncConfig[SqliteConnection, SqliteDriver]):
    """SQLite configuration opening one connection per session.

    Connections are opened in autocommit mode (``isolation_level=None``) so
    that transactions are only started by explicit ``begin()`` calls.
    """

    driver_type: "ClassVar[type[SqliteDriver]]" = SqliteDriver
    connection_type: "ClassVar[type[SqliteConnection]]" = SqliteConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[SqliteConnectionParams, dict[str, Any]]]" = None,
        statement_cache_size: int = DEFAULT_STATEMENT_CACHE_SIZE,
        on_connection_create: "Optional[Callable[[SqliteConnection], None]]" = None,
    ) -> None:
        """Initialize SQLite configuration.

        Args:
            connection_config: Parameters passed to :func:`sqlite3.connect`
            statement_cache_size: Prepared statement cache capacity of each session
            on_connection_create: Optional callback run on every new connection
        """
        config = dict(cast("dict[str, Any]", connection_config or {}))
        config.setdefault("database", ":memory:")
        if "isolation_level" in config and config["isolation_level"] is not None:
            logger.debug("Overriding isolation_level=%r with autocommit mode", config["isolation_level"])
        config["isolation_level"] = None
        database = str(config["database"])
        if database.startswith("file:") and not config.get("uri"):
            config["uri"] = True
        super().__init__(connection_config=config, statement_cache_size=statement_cache_size)
        self.on_connection_create = on_connection_create

    def create_connection(self) -> SqliteConnection:
        """Open a new SQLite connection."""
        connection = sqlite3.connect(**self.connection_config)
        if self.on_connection_create is not None:
            self.on_connection_create(connection)
        return connection
