"""PyMySQL database configuration."""

from typing import Any, ClassVar, Optional, TypedDict, Union, cast

import pymysql
from pymysql.constants import CLIENT
from typing_extensions import NotRequired

from sqlprep.adapters.pymysql.driver import PyMysqlConnection, PyMysqlDriver
from sqlprep.config import NoPoolSyncConfig
from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE

__all__ = ("PyMysqlConfig", "PyMysqlConnectionParams")


class PyMysqlConnectionParams(TypedDict, total=False):
    """PyMySQL connection parameters."""

    host: NotRequired[str]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    port: NotRequired[int]
    unix_socket: NotRequired[str]
    charset: NotRequired[str]
    connect_timeout: NotRequired[int]
    read_timeout: NotRequired[int]
    write_timeout: NotRequired[int]
    autocommit: NotRequired[bool]
    client_flag: NotRequired[int]
    ssl: NotRequired["dict[str, Any]"]
    init_command: NotRequired[str]
    sql_mode: NotRequired[str]


class PyMysqlConfig(NoPoolSyncConfig[PyMysqlConnection, PyMysqlDriver]):
    """MySQL/MariaDB configuration opening one PyMySQL connection per session.

    Connections default to ``utf8mb4`` and autocommit mode, and always enable
    ``CLIENT.MULTI_STATEMENTS`` so scripts can be sent in one round trip.
    """

    driver_type: "ClassVar[type[PyMysqlDriver]]" = PyMysqlDriver
    connection_type: "ClassVar[type[PyMysqlConnection]]" = PyMysqlConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[PyMysqlConnectionParams, dict[str, Any]]]" = None,
        statement_cache_size: int = DEFAULT_STATEMENT_CACHE_SIZE,
    ) -> None:
        """Initialize PyMySQL configuration.

        Args:
            connection_config: Parameters passed to :func:`pymysql.connect`
            statement_cache_size: Prepared statement cache capacity of each session
        """
        config = dict(cast("dict[str, Any]", connection_config or {}))
        config.setdefault("charset", "utf8mb4")
        config.setdefault("autocommit", True)
        config["client_flag"] = config.get("client_flag", 0) | CLIENT.MULTI_STATEMENTS
        super().__init__(connection_config=config, statement_cache_size=statement_cache_size)

    def create_connection(self) -> PyMysqlConnection:
        """Open a new PyMySQL connection."""
        return pymysql.connect(**self.connection_config)
