"""PyMySQL adapter for sqlprep."""

from sqlprep.exceptions import MissingDependencyError

try:
    import pymysql  # noqa: F401
except ImportError as e:
    raise MissingDependencyError(package="pymysql", install_package="pymysql") from e

from sqlprep.adapters.pymysql.config import PyMysqlConfig, PyMysqlConnectionParams
from sqlprep.adapters.pymysql.driver import (
    PyMysqlConnection,
    PyMysqlDriver,
    PyMysqlScriptCursor,
    PyMysqlStatementHandle,
)

__all__ = (
    "PyMysqlConfig",
    "PyMysqlConnection",
    "PyMysqlConnectionParams",
    "PyMysqlDriver",
    "PyMysqlScriptCursor",
    "PyMysqlStatementHandle",
)
