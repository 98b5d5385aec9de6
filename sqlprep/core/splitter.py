"""Dialect-aware SQL lexer, script splitter and placeholder scanner.

The lexer understands comments, string literals and quoted identifiers, so
semicolons and ``?`` characters inside them are never mistaken for statement
terminators or positional placeholders.

Components:
- TokenType/Token: lexical units produced by the tokenizer
- DialectConfig: per-dialect quoting rules, block keywords and terminators
- StatementSplitter: splits a script into individual statements
- count_placeholders / convert_placeholders_to_format: positional placeholder helpers
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Generator
from enum import Enum
from functools import lru_cache
from re import Pattern
from typing import Callable, Final, Optional

from mypy_extensions import mypyc_attr

from sqlprep.utils.logging import get_logger

__all__ = (
    "DialectConfig",
    "GenericDialectConfig",
    "MySQLDialectConfig",
    "SQLiteDialectConfig",
    "StatementSplitter",
    "Token",
    "TokenType",
    "convert_placeholders_to_format",
    "count_placeholders",
    "get_dialect_config",
    "leading_keyword",
    "split_sql_script",
    "tokenize_sql",
)

logger = get_logger("core.splitter")

DIALECT_CONFIG_SLOTS: Final = (
    "_block_starters",
    "_block_enders",
    "_statement_terminators",
    "_max_nesting_depth",
    "_name",
)

TOKEN_SLOTS: Final = ("type", "value", "line", "column", "position")

SPLITTER_SLOTS: Final = ("_dialect", "_strip_trailing_semicolon", "_compiled_patterns")

# Words that turn BEGIN into a transaction statement rather than a block opener.
TRANSACTION_BEGIN_WORDS: Final = frozenset({"TRANSACTION", "DEFERRED", "IMMEDIATE", "EXCLUSIVE", "WORK"})


class TokenType(Enum):
    """Types of tokens recognized by the SQL lexer."""

    COMMENT_LINE = "COMMENT_LINE"
    COMMENT_BLOCK = "COMMENT_BLOCK"
    STRING_LITERAL = "STRING_LITERAL"
    QUOTED_IDENTIFIER = "QUOTED_IDENTIFIER"
    KEYWORD = "KEYWORD"
    TERMINATOR = "TERMINATOR"
    PLACEHOLDER = "PLACEHOLDER"
    WORD = "WORD"
    WHITESPACE = "WHITESPACE"
    OTHER = "OTHER"


NON_EXECUTABLE_TOKENS: Final = frozenset({TokenType.WHITESPACE, TokenType.COMMENT_LINE, TokenType.COMMENT_BLOCK})


@mypyc_attr(allow_interpreted_subclasses=True)
class Token:
    """A lexical token with its source position."""

    __slots__ = TOKEN_SLOTS

    def __init__(self, type: TokenType, value: str, line: int, column: int, position: int) -> None:
        self.type = type
        self.value = value
        self.line = line
        self.column = column
        self.position = position

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"


@mypyc_attr(allow_interpreted_subclasses=True)
class DialectConfig(ABC):
    """Abstract base class for SQL dialect lexing rules."""

    __slots__ = DIALECT_CONFIG_SLOTS

    def __init__(self) -> None:
        self._name: Optional[str] = None
        self._block_starters: Optional[set[str]] = None
        self._block_enders: Optional[set[str]] = None
        self._statement_terminators: Optional[set[str]] = None
        self._max_nesting_depth: Optional[int] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the dialect (e.g., 'mysql', 'sqlite')."""

    @property
    @abstractmethod
    def block_starters(self) -> set[str]:
        """Keywords that start a block (e.g., BEGIN, CASE)."""

    @property
    @abstractmethod
    def block_enders(self) -> set[str]:
        """Keywords that end a block (e.g., END)."""

    @property
    def statement_terminators(self) -> set[str]:
        """Characters that terminate statements."""
        if self._statement_terminators is None:
            self._statement_terminators = {";"}
        return self._statement_terminators

    @property
    def max_nesting_depth(self) -> int:
        """Maximum allowed nesting depth for blocks."""
        if self._max_nesting_depth is None:
            self._max_nesting_depth = 256
        return self._max_nesting_depth

    def get_all_token_patterns(self) -> "list[tuple[TokenType, str]]":
        """Assembles the complete, ordered list of token regex patterns."""
        patterns: list[tuple[TokenType, str]] = [
            (TokenType.COMMENT_LINE, r"--[^\n]*"),
            (TokenType.COMMENT_BLOCK, r"/\*[\s\S]*?\*/"),
        ]
        patterns.extend(self._get_dialect_specific_patterns())
        patterns.extend(self._get_quoting_patterns())

        all_keywords = self.block_starters | self.block_enders
        if all_keywords:
            sorted_keywords = sorted(all_keywords, key=len, reverse=True)
            patterns.append((TokenType.KEYWORD, r"\b(" + "|".join(re.escape(kw) for kw in sorted_keywords) + r")\b"))

        patterns.append((TokenType.TERMINATOR, "|".join(re.escape(t) for t in self.statement_terminators)))
        patterns.extend([
            (TokenType.PLACEHOLDER, r"\?"),
            (TokenType.WORD, r"[A-Za-z_][A-Za-z0-9_$]*"),
            (TokenType.WHITESPACE, r"\s+"),
            (TokenType.OTHER, r"."),
        ])
        return patterns

    def _get_dialect_specific_patterns(self) -> "list[tuple[TokenType, str]]":
        """Override to add dialect-specific token patterns ahead of quoting rules."""
        return []

    def _get_quoting_patterns(self) -> "list[tuple[TokenType, str]]":
        return [
            (TokenType.STRING_LITERAL, r"'(?:[^']|'')*'"),
            (TokenType.QUOTED_IDENTIFIER, r'"(?:[^"]|"")*"|\[[^\]]*\]'),
        ]

    def is_block_start(self, tokens: "list[Token]", current_pos: int) -> bool:
        """Check if a block-starting keyword really opens a block.

        ``BEGIN`` followed by a terminator, end of input, or a transaction
        word (``BEGIN TRANSACTION``, ``BEGIN IMMEDIATE``...) starts a transaction.
        """
        if tokens[current_pos].value.upper() != "BEGIN":
            return True
        for token in tokens[current_pos + 1 :]:
            if token.type in NON_EXECUTABLE_TOKENS:
                continue
            if token.type == TokenType.TERMINATOR:
                return False
            return not (token.type == TokenType.WORD and token.value.upper() in TRANSACTION_BEGIN_WORDS)
        return False


class GenericDialectConfig(DialectConfig):
    """Generic ANSI SQL lexing rules."""

    @property
    def name(self) -> str:
        if self._name is None:
            self._name = "generic"
        return self._name

    @property
    def block_starters(self) -> set[str]:
        if self._block_starters is None:
            self._block_starters = {"BEGIN", "CASE"}
        return self._block_starters

    @property
    def block_enders(self) -> set[str]:
        if self._block_enders is None:
            self._block_enders = {"END"}
        return self._block_enders


class MySQLDialectConfig(DialectConfig):
    """MySQL lexing rules: ``#`` comments, backslash escapes, backtick identifiers."""

    @property
    def name(self) -> str:
        if self._name is None:
            self._name = "mysql"
        return self._name

    @property
    def block_starters(self) -> set[str]:
        if self._block_starters is None:
            self._block_starters = {"BEGIN", "CASE"}
        return self._block_starters

    @property
    def block_enders(self) -> set[str]:
        if self._block_enders is None:
            self._block_enders = {"END"}
        return self._block_enders

    def _get_dialect_specific_patterns(self) -> "list[tuple[TokenType, str]]":
        return [(TokenType.COMMENT_LINE, r"#[^\n]*")]

    def _get_quoting_patterns(self) -> "list[tuple[TokenType, str]]":
        return [
            (TokenType.STRING_LITERAL, r"'(?:[^'\\]|\\.|'')*'"),
            (TokenType.STRING_LITERAL, r'"(?:[^"\\]|\\.|"")*"'),
            (TokenType.QUOTED_IDENTIFIER, r"`(?:[^`]|``)*`"),
        ]


class SQLiteDialectConfig(DialectConfig):
    """SQLite lexing rules: double quote, backtick and bracket identifiers."""

    @property
    def name(self) -> str:
        if self._name is None:
            self._name = "sqlite"
        return self._name

    @property
    def block_starters(self) -> set[str]:
        if self._block_starters is None:
            self._block_starters = {"BEGIN", "CASE"}
        return self._block_starters

    @property
    def block_enders(self) -> set[str]:
        if self._block_enders is None:
            self._block_enders = {"END"}
        return self._block_enders

    def _get_quoting_patterns(self) -> "list[tuple[TokenType, str]]":
        return [
            (TokenType.STRING_LITERAL, r"'(?:[^']|'')*'"),
            (TokenType.QUOTED_IDENTIFIER, r'"(?:[^"]|"")*"|`(?:[^`]|``)*`|\[[^\]]*\]'),
        ]


_DIALECT_CONFIGS: "dict[str, Callable[[], DialectConfig]]" = {
    "generic": GenericDialectConfig,
    "mysql": MySQLDialectConfig,
    "mariadb": MySQLDialectConfig,
    "sqlite": SQLiteDialectConfig,
}


@lru_cache(maxsize=16)
def get_dialect_config(dialect: Optional[str] = None) -> DialectConfig:
    """Return the lexing rules for ``dialect``, falling back to generic rules."""
    name = (dialect or "generic").lower()
    factory = _DIALECT_CONFIGS.get(name)
    if factory is None:
        logger.warning("Unknown dialect '%s', using generic SQL lexer", dialect)
        factory = GenericDialectConfig
    return factory()


@lru_cache(maxsize=16)
def _compile_patterns(dialect: DialectConfig) -> "tuple[tuple[TokenType, Pattern[str]], ...]":
    return tuple(
        (token_type, re.compile(pattern, re.IGNORECASE | re.DOTALL))
        for token_type, pattern in dialect.get_all_token_patterns()
    )


def tokenize_sql(sql: str, dialect: Optional[str] = None) -> Generator[Token, None, None]:
    """Tokenize ``sql`` according to the rules of ``dialect``."""
    compiled_patterns = _compile_patterns(get_dialect_config(dialect))
    pos = 0
    line = 1
    line_start = 0

    while pos < len(sql):
        for token_type, pattern in compiled_patterns:
            match = pattern.match(sql, pos)
            if match:
                value = match.group(0)
                column = pos - line_start + 1

                newlines = value.count("\n")
                if newlines > 0:
                    line += newlines
                    line_start = pos + value.rfind("\n") + 1

                yield Token(type=token_type, value=value, line=line, column=column, position=pos)
                pos = match.end()
                break
        else:
            logger.error("Failed to tokenize at position %d: %s", pos, sql[pos : pos + 20])
            pos += 1


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementSplitter:
    """Splits a SQL script into individual statements."""

    __slots__ = SPLITTER_SLOTS

    def __init__(self, dialect: DialectConfig, strip_trailing_semicolon: bool = False) -> None:
        self._dialect = dialect
        self._strip_trailing_semicolon = strip_trailing_semicolon

    def split(self, sql: str) -> "list[str]":
        statements: list[str] = []
        current_tokens: list[Token] = []
        block_stack: list[str] = []

        all_tokens = list(tokenize_sql(sql, self._dialect.name))

        for token_idx, token in enumerate(all_tokens):
            current_tokens.append(token)

            if token.type in NON_EXECUTABLE_TOKENS:
                continue

            if token.type == TokenType.KEYWORD:
                token_upper = token.value.upper()
                if token_upper in self._dialect.block_starters:
                    if self._dialect.is_block_start(all_tokens, token_idx):
                        block_stack.append(token_upper)
                        if len(block_stack) > self._dialect.max_nesting_depth:
                            msg = f"Maximum nesting depth ({self._dialect.max_nesting_depth}) exceeded"
                            raise ValueError(msg)
                elif token_upper in self._dialect.block_enders and block_stack:
                    block_stack.pop()

            if not block_stack and token.type == TokenType.TERMINATOR:
                self._append_statement(statements, current_tokens, token)
                current_tokens = []

        if current_tokens:
            self._append_statement(statements, current_tokens, None)

        return statements

    def _append_statement(self, statements: "list[str]", tokens: "list[Token]", terminator: Optional[Token]) -> None:
        if not any(token.type not in NON_EXECUTABLE_TOKENS and token.type != TokenType.TERMINATOR for token in tokens):
            return
        statement = "".join(token.value for token in tokens).strip()
        if self._strip_trailing_semicolon and terminator is not None and statement.endswith(terminator.value):
            statement = statement[: -len(terminator.value)].rstrip()
        if statement:
            statements.append(statement)


def split_sql_script(script: str, dialect: Optional[str] = None, strip_trailing_terminator: bool = False) -> "list[str]":
    """Split a SQL script into individual statements.

    Args:
        script: The SQL script to split
        dialect: The SQL dialect name ('mysql', 'sqlite', 'generic')
        strip_trailing_terminator: If True, remove trailing terminators from statements

    Returns:
        List of individual SQL statements, empty and comment-only fragments dropped
    """
    splitter = StatementSplitter(get_dialect_config(dialect), strip_trailing_semicolon=strip_trailing_terminator)
    return splitter.split(script)


def leading_keyword(sql: str, dialect: Optional[str] = None) -> Optional[str]:
    """Upper-cased first word of ``sql``, skipping whitespace and comments."""
    for token in tokenize_sql(sql, dialect):
        if token.type in NON_EXECUTABLE_TOKENS:
            continue
        return token.value.upper() if token.type in {TokenType.WORD, TokenType.KEYWORD} else None
    return None


def count_placeholders(sql: str, dialect: Optional[str] = None) -> int:
    """Count positional ``?`` placeholders outside literals, identifiers and comments."""
    return sum(1 for token in tokenize_sql(sql, dialect) if token.type == TokenType.PLACEHOLDER)


def convert_placeholders_to_format(sql: str, dialect: Optional[str] = None) -> "tuple[str, int]":
    """Rewrite ``?`` placeholders to ``%s`` for format-style drivers.

    Literal ``%`` characters are doubled since the driver interpolates the
    whole statement with the ``%`` operator.

    Returns:
        Tuple of (converted SQL, placeholder count)
    """
    parts: list[str] = []
    count = 0
    for token in tokenize_sql(sql, dialect):
        if token.type == TokenType.PLACEHOLDER:
            parts.append("%s")
            count += 1
        else:
            parts.append(token.value.replace("%", "%%"))
    return "".join(parts), count
