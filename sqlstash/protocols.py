"""Runtime-checkable protocols for the collaborators SQLStash wraps.

The caching proxies never subclass a driver. They hold one object that
satisfies these protocols and forward to it.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlstash.core.rows import Row

__all__ = ("CacheBackendProtocol", "ConnectionProtocol", "StatementProtocol", "SupportsClose")


@runtime_checkable
class StatementProtocol(Protocol):
    """A prepared statement of the underlying database."""

    def execute(self, parameters: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Execute the statement, returning a truthy value on success."""
        ...

    def fetch_all(self) -> "Sequence[Row]":
        """Return every remaining row of the last execution."""
        ...

    def fetch_column(self, column_index: int = 0) -> Any:
        """Return one column of the next row."""
        ...

    def row_count(self) -> int:
        """Return the driver's row count for the last execution."""
        ...

    def bind_value(self, identifier: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind a value to a named placeholder."""
        ...

    def bind_param(self, identifier: str, variable: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind a variable to a named placeholder."""
        ...

    def bind_column(self, column: Any, param: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind a result column to a variable."""
        ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """A database connection able to prepare statements."""

    def prepare(self, query: str, options: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Return a :class:`StatementProtocol`, or a falsy failure value."""
        ...


@runtime_checkable
class CacheBackendProtocol(Protocol):
    """Key/value store holding cached result documents."""

    def load(self, key: str) -> Any:
        """Return the stored value or None."""
        ...

    def save(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


@runtime_checkable
class SupportsClose(Protocol):
    """Objects holding resources that can be released."""

    def close(self) -> Any:
        """Release the resources."""
        ...
