"""In-process cache backend."""

from collections.abc import Iterator
from typing import Any

__all__ = ("MemoryCacheBackend",)


class MemoryCacheBackend:
    """Dictionary backed store, scoped to one process.

    Values are kept as given, with no size bound or expiry.
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}

    def load(self, key: str) -> Any:
        return self._store.get(key)

    def save(self, key: str, value: Any) -> None:
        self._store[key] = value

    def keys(self) -> "list[str]":
        return list(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __iter__(self) -> "Iterator[str]":
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)
