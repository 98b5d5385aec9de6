from collections.abc import Mapping, Sequence
from typing import Any

from typing_extensions import TypeAlias, TypeVar

__all__ = ("ConnectionT", "DictRow", "DriverT", "RowData", "StatementParameters")

ConnectionT = TypeVar("ConnectionT")
"""Type variable for raw DB-API connection types."""
DriverT = TypeVar("DriverT")
"""Type variable for driver types."""

DictRow: TypeAlias = "dict[str, Any]"
"""A row keyed by column name."""
StatementParameters: TypeAlias = "Sequence[Any]"
"""Positional parameter values for a single execution."""
RowData: TypeAlias = "Mapping[str, Any]"
"""Column name to value mapping for inserts and updates."""
