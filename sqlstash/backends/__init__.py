"""Cache backends for SQLStash."""

from sqlstash.backends.memory import MemoryCacheBackend
from sqlstash.backends.sqlite import SqliteCacheBackend

__all__ = ("MemoryCacheBackend", "SqliteCacheBackend")
