"""Core caching and fetch emulation for SQLStash."""

from sqlstash.core.cache import CacheEntry, CacheStats, ResultCache
from sqlstash.core.formatter import FetchOrientation, FetchStyle, format_row, format_rows, validate_cursor_options
from sqlstash.core.keys import CacheKeyBuilder, digest, normalize_identifier, resolve_query
from sqlstash.core.results import END_OF_DATA, EndOfDataType, FetchAllResult, FetchResult, Unsupported
from sqlstash.core.rows import Row, Selector

__all__ = (
    "END_OF_DATA",
    "CacheEntry",
    "CacheKeyBuilder",
    "CacheStats",
    "EndOfDataType",
    "FetchAllResult",
    "FetchOrientation",
    "FetchResult",
    "FetchStyle",
    "ResultCache",
    "Row",
    "Selector",
    "Unsupported",
    "digest",
    "format_row",
    "format_rows",
    "normalize_identifier",
    "resolve_query",
    "validate_cursor_options",
)
