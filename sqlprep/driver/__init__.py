"""Driver base classes for database adapters."""

from sqlprep.driver import mixins
from sqlprep.driver._common import CommonDriverAttributesMixin, RawOutcome, ScriptCursor, StatementHandle
from sqlprep.driver._sync import SyncDriverAdapterBase

__all__ = (
    "CommonDriverAttributesMixin",
    "RawOutcome",
    "ScriptCursor",
    "StatementHandle",
    "SyncDriverAdapterBase",
    "mixins",
)
