"""Result cache facade.

This module provides the keyed store used by both the statement and the
connection caching paths.

Components:
- CacheEntry: Immutable rows plus execution result of one statement
- CacheStats: Hit/miss/save counters
- ResultCache: load/save facade over an injected backend

Entries reach the backend as JSON-compatible documents, so any key/value
store that can hold nested lists and dicts works as a backend. There is no
expiry, eviction or invalidation: an entry lives as long as the backend keeps it.
"""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlstash.core.rows import Row
from sqlstash.exceptions import SerializationError
from sqlstash.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlstash.protocols import CacheBackendProtocol

__all__ = ("CacheEntry", "CacheStats", "ResultCache")

logger = get_logger("sqlstash.core.cache")

CACHE_ENTRY_SLOTS: Final = ("_result", "_rows")
CACHE_STATS_SLOTS: Final = ("hits", "misses", "saves", "total_operations")
RESULT_CACHE_SLOTS: Final = ("_backend", "_stats")


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheEntry:
    """Rows and execution result captured from one successful execution.

    Args:
        rows: Rows fetched from the underlying statement.
        result: Value the underlying ``execute`` returned.
    """

    __slots__ = CACHE_ENTRY_SLOTS

    def __init__(self, rows: "Iterable[Row]", result: Any = True) -> None:
        self._rows: tuple[Row, ...] = tuple(rows)
        self._result = result

    @property
    def rows(self) -> "tuple[Row, ...]":
        return self._rows

    @property
    def result(self) -> Any:
        return self._result

    def to_document(self) -> "dict[str, Any]":
        """Return the entry as a JSON-compatible document."""
        return {"rows": [row.to_document() for row in self._rows], "result": self._result}

    @classmethod
    def from_document(cls, document: Any) -> "CacheEntry":
        """Rebuild an entry from :meth:`to_document` output.

        Raises:
            SerializationError: If the document does not have the expected shape.
        """
        if not isinstance(document, Mapping) or "rows" not in document:
            msg = f"Cache document must be a mapping with a 'rows' key, got {type(document).__name__}"
            raise SerializationError(msg)
        rows = document["rows"]
        if not isinstance(rows, (list, tuple)):
            msg = "Cache document 'rows' must be a list"
            raise SerializationError(msg)
        return cls((Row.from_document(row) for row in rows), document.get("result", True))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheEntry):
            return NotImplemented
        return self._rows == other._rows and self._result == other._result

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"CacheEntry(rows={len(self._rows)}, result={self._result!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Cache statistics tracking."""

    __slots__ = CACHE_STATS_SLOTS

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.saves = 0
        self.total_operations = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    @property
    def miss_rate(self) -> float:
        """Calculate cache miss rate as percentage."""
        return 100.0 - self.hit_rate

    def record_hit(self) -> None:
        self.hits += 1
        self.total_operations += 1

    def record_miss(self) -> None:
        self.misses += 1
        self.total_operations += 1

    def record_save(self) -> None:
        self.saves += 1
        self.total_operations += 1

    def reset(self) -> None:
        """Reset all statistics."""
        self.hits = 0
        self.misses = 0
        self.saves = 0
        self.total_operations = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, "
            f"saves={self.saves}, ops={self.total_operations})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class ResultCache:
    """Keyed store of :class:`CacheEntry` objects.

    Backend errors are not caught; they reach the caller unchanged.

    Args:
        backend: Store implementing ``load(key)`` and ``save(key, value)``.
    """

    __slots__ = RESULT_CACHE_SLOTS

    def __init__(self, backend: "CacheBackendProtocol") -> None:
        self._backend = backend
        self._stats = CacheStats()

    @property
    def backend(self) -> "CacheBackendProtocol":
        return self._backend

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def load(self, key: str) -> "Optional[CacheEntry]":
        """Return the entry stored under ``key``, or None."""
        document = self._backend.load(key)
        if document is None:
            self._stats.record_miss()
            return None
        self._stats.record_hit()
        return CacheEntry.from_document(document)

    def save(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous entry."""
        self._backend.save(key, entry.to_document())
        self._stats.record_save()
        logger.debug("Saved cache entry %s", key, extra={"extra_fields": {"cache_key": key, "rows": len(entry.rows)}})

    def __repr__(self) -> str:
        return f"ResultCache(backend={type(self._backend).__name__}, stats={self._stats!r})"
