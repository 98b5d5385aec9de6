"""sqlprep: prepared statement caching, batch inserts, scripts and transactions over DB-API drivers."""

from sqlprep import core, driver, exceptions, typing, utils
from sqlprep.__metadata__ import __version__
from sqlprep.config import NoPoolSyncConfig
from sqlprep.core.cache import CacheStats, StatementCache
from sqlprep.core.result import ResultSet, RowStream
from sqlprep.driver import SyncDriverAdapterBase
from sqlprep.driver.mixins import BatchStrategy, TransactionState
from sqlprep.exceptions import (
    BindError,
    DatabaseError,
    ExecutionError,
    PrepareError,
    ResultPendingError,
    SQLPrepError,
    ValidationError,
)
from sqlprep.typing import DictRow, StatementParameters

__all__ = (
    "BatchStrategy",
    "BindError",
    "CacheStats",
    "DatabaseError",
    "DictRow",
    "ExecutionError",
    "NoPoolSyncConfig",
    "PrepareError",
    "ResultPendingError",
    "ResultSet",
    "RowStream",
    "SQLPrepError",
    "StatementCache",
    "StatementParameters",
    "SyncDriverAdapterBase",
    "TransactionState",
    "ValidationError",
    "__version__",
    "core",
    "driver",
    "exceptions",
    "typing",
    "utils",
)
