"""Identifier validation and quoting."""

import re
from typing import Final

from sqlprep.exceptions import ValidationError

__all__ = ("IDENTIFIER_PATTERN", "quote_identifier", "quote_identifier_path", "validate_identifier")

IDENTIFIER_PATTERN: Final = re.compile(r"[A-Za-z0-9_$]+")


def validate_identifier(identifier: str) -> str:
    """Ensure ``identifier`` is made only of letters, digits, ``_`` and ``$``.

    Raises:
        ValidationError: If the identifier is empty or contains any other character.
    """
    if not isinstance(identifier, str) or not IDENTIFIER_PATTERN.fullmatch(identifier):
        msg = f"Invalid identifier: {identifier!r}"
        raise ValidationError(msg)
    return identifier


def quote_identifier(identifier: str, quote_char: str = "`") -> str:
    """Validate and quote a single identifier.

    Args:
        identifier: Bare table or column name.
        quote_char: Dialect quote character.

    Returns:
        The quoted identifier.
    """
    return f"{quote_char}{validate_identifier(identifier)}{quote_char}"


def quote_identifier_path(path: str, quote_char: str = "`") -> str:
    """Validate and quote a dotted path such as ``schema.table`` segment by segment."""
    if not isinstance(path, str):
        msg = f"Invalid identifier: {path!r}"
        raise ValidationError(msg)
    return ".".join(quote_identifier(segment, quote_char) for segment in path.split("."))
