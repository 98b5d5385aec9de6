"""Driver mixins for batch inserts, scripts and transactions."""

from sqlprep.driver.mixins._batch import BatchInsertMixin, BatchInsertPlan, BatchStrategy, plan_batch_insert
from sqlprep.driver.mixins._script import ScriptExecutionMixin
from sqlprep.driver.mixins._transaction import TransactionMixin, TransactionState

__all__ = (
    "BatchInsertMixin",
    "BatchInsertPlan",
    "BatchStrategy",
    "ScriptExecutionMixin",
    "TransactionMixin",
    "TransactionState",
    "plan_batch_insert",
)
