"""Adapter for PEP 249 (DB-API 2.0) connections.

Wraps any DB-API connection whose driver accepts the ``named`` paramstyle
(``:name`` placeholders with a mapping of values), such as :mod:`sqlite3`, so it
can sit behind :class:`~sqlstash.connection.CachingConnection`.
"""

import contextlib
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

from sqlstash.config import DEFAULT_PARAMETER_MARKER
from sqlstash.core.rows import Row
from sqlstash.exceptions import DatabaseError, SQLStashError
from sqlstash.utils.logging import get_logger

__all__ = ("DBAPIConnection", "DBAPIStatement")

logger = get_logger("sqlstash.adapters.dbapi")


@contextmanager
def handle_database_exceptions() -> "Generator[None, None, None]":
    """Wrap driver errors in :class:`DatabaseError`."""
    try:
        yield
    except SQLStashError:
        raise
    except Exception as e:
        msg = f"Database driver error: {e}"
        raise DatabaseError(msg) from e


class DBAPIStatement:
    """Prepared statement over a DB-API connection.

    Nothing reaches the database until :meth:`execute`. Bound values are kept
    here and passed to ``cursor.execute`` as a mapping without placeholder
    markers.

    Args:
        connection: DB-API connection.
        sql: Query text using ``:name`` placeholders.
        options: Driver options given to ``prepare``. Kept for inspection only.
        parameter_marker: Placeholder marker stripped from bound identifiers.
    """

    __slots__ = ("_bound", "_column_bindings", "_connection", "_cursor", "_marker", "_options", "_sql")

    def __init__(
        self,
        connection: Any,
        sql: str,
        options: "Optional[Mapping[str, Any]]" = None,
        parameter_marker: str = DEFAULT_PARAMETER_MARKER,
    ) -> None:
        self._connection = connection
        self._sql = sql
        self._options = dict(options or {})
        self._marker = parameter_marker
        self._bound: dict[str, Any] = {}
        self._column_bindings: dict[Any, Any] = {}
        self._cursor: Any = None

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def options(self) -> "dict[str, Any]":
        return dict(self._options)

    @property
    def bound_parameters(self) -> "dict[str, Any]":
        """Values that will be sent on the next execute, keyed without markers."""
        return dict(self._bound)

    @property
    def column_bindings(self) -> "dict[Any, Any]":
        return dict(self._column_bindings)

    def _strip(self, identifier: Any) -> str:
        name = str(identifier)
        return name[len(self._marker) :] if name.startswith(self._marker) else name

    def bind_value(self, identifier: str, value: Any, data_type: Any = None) -> bool:
        self._bound[self._strip(identifier)] = value
        return True

    def bind_param(
        self,
        identifier: str,
        variable: Any,
        data_type: Any = None,
        length: Optional[int] = None,
        driver_options: Any = None,
    ) -> bool:
        # Python has no by-reference binding; the value is captured now.
        self._bound[self._strip(identifier)] = variable
        return True

    def bind_column(
        self,
        column: Any,
        param: Any,
        data_type: Any = None,
        max_length: Optional[int] = None,
        driver_options: Any = None,
    ) -> bool:
        self._column_bindings[column] = param
        return True

    def execute(self, parameters: "Optional[Mapping[str, Any]]" = None) -> bool:
        """Run the statement with the bound values merged with ``parameters``.

        Raises:
            DatabaseError: If the driver raises.

        Returns:
            True once the driver accepted the statement.
        """
        if parameters:
            for identifier, value in parameters.items():
                self._bound[self._strip(identifier)] = value
        self._close_cursor()
        with handle_database_exceptions():
            cursor = self._connection.cursor()
            try:
                cursor.execute(self._sql, dict(self._bound))
            except Exception:
                with contextlib.suppress(Exception):
                    cursor.close()
                raise
        self._cursor = cursor
        return True

    def fetch_all(self) -> "list[Row]":
        """Fetch the remaining rows as BOTH-shaped :class:`Row` objects."""
        if self._cursor is None:
            return []
        with handle_database_exceptions():
            records = self._cursor.fetchall()
            column_names = [column[0] for column in self._cursor.description or ()]
        return [Row.from_values(column_names, tuple(record)) for record in records]

    def fetch_column(self, column_index: int = 0) -> Any:
        """Return ``column_index`` of the next row, or False when no row is left."""
        if self._cursor is None:
            return False
        with handle_database_exceptions():
            record = self._cursor.fetchone()
        if record is None:
            return False
        return record[column_index]

    def row_count(self) -> int:
        """The driver's ``rowcount``, or -1 before execution."""
        if self._cursor is None:
            return -1
        return int(self._cursor.rowcount)

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            with contextlib.suppress(Exception):
                self._cursor.close()
            self._cursor = None

    def close(self) -> None:
        self._close_cursor()


class DBAPIConnection:
    """Connection adapter producing :class:`DBAPIStatement` objects.

    Args:
        connection: DB-API connection using the ``named`` paramstyle.
        parameter_marker: Placeholder marker used in queries.
    """

    __slots__ = ("_connection", "_marker")

    def __init__(self, connection: Any, parameter_marker: str = DEFAULT_PARAMETER_MARKER) -> None:
        self._connection = connection
        self._marker = parameter_marker

    @property
    def connection(self) -> Any:
        """The raw DB-API connection."""
        return self._connection

    def prepare(self, query: str, options: "Optional[Mapping[str, Any]]" = None) -> DBAPIStatement:
        logger.debug("Preparing statement: %s", query)
        return DBAPIStatement(self._connection, query, options, parameter_marker=self._marker)

    def commit(self) -> None:
        with handle_database_exceptions():
            self._connection.commit()

    def close(self) -> None:
        self._connection.close()
