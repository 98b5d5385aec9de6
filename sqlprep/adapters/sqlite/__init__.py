"""SQLite adapter for sqlprep."""

from sqlprep.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from sqlprep.adapters.sqlite.driver import SqliteConnection, SqliteDriver, SqliteScriptCursor, SqliteStatementHandle

__all__ = (
    "SqliteConfig",
    "SqliteConnection",
    "SqliteConnectionParams",
    "SqliteDriver",
    "SqliteScriptCursor",
    "SqliteStatementHandle",
)
