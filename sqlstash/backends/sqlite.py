"""SQLite document store backend.

Each cache key maps to one MessagePack document in a single table, which makes
the cache survive process restarts and lets several processes on one host share
it. MessagePack keeps BLOB values as ``bytes``, so a row replayed from the cache
carries the same value types as the row first fetched from the database.
"""

import contextlib
import re
import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlstash._serialization import decode_msgpack, encode_msgpack
from sqlstash.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from types import TracebackType

__all__ = ("DEFAULT_TABLE_NAME", "SqliteCacheBackend")

DEFAULT_TABLE_NAME = "sqlstash_cache"
_TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class _SqliteCursor:
    """Context manager for SQLite cursor management."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> sqlite3.Cursor:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class SqliteCacheBackend:
    """Store cached result documents as MessagePack in a SQLite table.

    Args:
        database: Path of the SQLite database file, or ``":memory:"``.
        table_name: Table holding the documents. Created when missing.
        connection: Existing connection to use instead of opening ``database``.
    """

    __slots__ = ("_connection", "_owns_connection", "_table_name")

    def __init__(
        self,
        database: "Union[str, Path]" = ":memory:",
        table_name: str = DEFAULT_TABLE_NAME,
        connection: "Optional[sqlite3.Connection]" = None,
    ) -> None:
        if not _TABLE_NAME_PATTERN.match(table_name):
            msg = f"Invalid cache table name: {table_name!r}"
            raise ImproperConfigurationError(msg)
        self._table_name = table_name
        self._owns_connection = connection is None
        self._connection = connection if connection is not None else sqlite3.connect(str(database))
        self._create_table()

    @property
    def table_name(self) -> str:
        return self._table_name

    def _create_table(self) -> None:
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(
                f"CREATE TABLE IF NOT EXISTS {self._table_name} ("
                "cache_key TEXT PRIMARY KEY, "
                "document BLOB NOT NULL, "
                "stored_at REAL NOT NULL)"
            )
        self._connection.commit()

    def load(self, key: str) -> Any:
        """Return the decoded document stored under ``key``, or None."""
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(f"SELECT document FROM {self._table_name} WHERE cache_key = ?", (key,))
            record = cursor.fetchone()
        if record is None:
            return None
        return decode_msgpack(record[0])

    def save(self, key: str, value: Any) -> None:
        """Encode ``value`` and store it under ``key``, replacing any previous document."""
        document = encode_msgpack(value)
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(
                f"INSERT INTO {self._table_name} (cache_key, document, stored_at) VALUES (?, ?, ?) "
                "ON CONFLICT(cache_key) DO UPDATE SET document = excluded.document, stored_at = excluded.stored_at",
                (key, document, time.time()),
            )
        self._connection.commit()

    def keys(self) -> "list[str]":
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(f"SELECT cache_key FROM {self._table_name} ORDER BY stored_at")
            return [record[0] for record in cursor.fetchall()]

    def __len__(self) -> int:
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {self._table_name}")
            return int(cursor.fetchone()[0])

    def __contains__(self, key: object) -> bool:
        with _SqliteCursor(self._connection) as cursor:
            cursor.execute(f"SELECT 1 FROM {self._table_name} WHERE cache_key = ?", (key,))
            return cursor.fetchone() is not None

    def close(self) -> None:
        """Close the connection if this backend opened it."""
        if self._owns_connection:
            self._connection.close()

    def __enter__(self) -> "SqliteCacheBackend":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()
