"""Core statement processing: parameter binding, statement cache, results and SQL lexing."""

from sqlprep.core.cache import DEFAULT_STATEMENT_CACHE_SIZE, CacheStats, StatementCache
from sqlprep.core.identifiers import quote_identifier, quote_identifier_path, validate_identifier
from sqlprep.core.parameters import BoundParameter, WireType, bind_parameter, bind_parameters, wire_type_signature
from sqlprep.core.result import DEFAULT_STREAM_BATCH_SIZE, ResultSet, RowStream
from sqlprep.core.splitter import (
    StatementSplitter,
    convert_placeholders_to_format,
    count_placeholders,
    split_sql_script,
)

__all__ = (
    "DEFAULT_STATEMENT_CACHE_SIZE",
    "DEFAULT_STREAM_BATCH_SIZE",
    "BoundParameter",
    "CacheStats",
    "ResultSet",
    "RowStream",
    "StatementCache",
    "StatementSplitter",
    "WireType",
    "bind_parameter",
    "bind_parameters",
    "convert_placeholders_to_format",
    "count_placeholders",
    "quote_identifier",
    "quote_identifier_path",
    "split_sql_script",
    "validate_identifier",
    "wire_type_signature",
)
