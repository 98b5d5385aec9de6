"""Parameter binding.

Converts an ordered sequence of application values into the wire
representation a compiled statement expects. Every value falls into one of a
small closed set of buckets; the bucket decides the wire type tag and the
value actually sent to the driver.

Type mapping:
- ``None`` -> ``TEXT`` (a NULL bound through a numeric type can be coerced to 0)
- ``bool`` -> ``INTEGER`` as 1/0
- ``int`` -> ``INTEGER``
- ``float`` -> ``DOUBLE``
- ``str`` -> ``TEXT``
- ``bytes``/``bytearray``/``memoryview`` -> ``BLOB``
- anything else -> ``TEXT`` using ``str(value)``
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, NamedTuple, Optional

from sqlprep.exceptions import ValidationError

__all__ = ("BoundParameter", "WireType", "bind_parameter", "bind_parameters", "wire_type_signature")


class WireType(Enum):
    """Wire-level type tag of a bound parameter."""

    INTEGER = "i"
    DOUBLE = "d"
    TEXT = "s"
    BLOB = "b"

    def __str__(self) -> str:
        return self.value


class BoundParameter(NamedTuple):
    """A single value ready for the driver, tagged with its wire type."""

    wire_type: WireType
    value: Any


_NULL = BoundParameter(WireType.TEXT, None)


def bind_parameter(value: Any) -> BoundParameter:
    """Classify one application value.

    Args:
        value: The application value.

    Returns:
        The tagged, wire-ready parameter.
    """
    if value is None:
        return _NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return BoundParameter(WireType.INTEGER, 1 if value else 0)
    if isinstance(value, int):
        return BoundParameter(WireType.INTEGER, value)
    if isinstance(value, float):
        return BoundParameter(WireType.DOUBLE, value)
    if isinstance(value, str):
        return BoundParameter(WireType.TEXT, value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BoundParameter(WireType.BLOB, bytes(value))
    return BoundParameter(WireType.TEXT, str(value))


def bind_parameters(parameters: Optional[Sequence[Any]]) -> "tuple[BoundParameter, ...]":
    """Bind an ordered parameter set, preserving positional order.

    Args:
        parameters: Positional values, or ``None`` for a statement without placeholders.

    Raises:
        ValidationError: If ``parameters`` is not a positional sequence.

    Returns:
        Tuple of bound parameters; empty when there is nothing to bind.
    """
    if parameters is None:
        return ()
    if isinstance(parameters, (str, bytes, bytearray, Mapping)) or not isinstance(parameters, Sequence):
        msg = f"Parameters must be a positional sequence, got {type(parameters).__name__}"
        raise ValidationError(msg)
    return tuple(bind_parameter(value) for value in parameters)


def wire_type_signature(parameters: "Sequence[BoundParameter]") -> str:
    """Render the wire types of a parameter set as a compact string such as ``"isd"``."""
    return "".join(parameter.wire_type.value for parameter in parameters)
