"""Caching wrapper around a prepared statement.

:class:`CachingStatement` records bound parameters, derives a cache key from
the resolved query on every ``execute`` and either replays a cached result set
or runs the real statement and captures its full result set. All fetches are
then served from the captured rows.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Final, Optional, Union

from sqlstash.config import CacheConfig, get_default_config
from sqlstash.core.cache import CacheEntry
from sqlstash.core.formatter import FetchOrientation, FetchStyle, format_row, format_rows, validate_cursor_options
from sqlstash.core.keys import CacheKeyBuilder, normalize_identifier
from sqlstash.core.results import END_OF_DATA, Unsupported
from sqlstash.core.rows import Row
from sqlstash.exceptions import UnsupportedOptionError
from sqlstash.protocols import SupportsClose
from sqlstash.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlstash.core.cache import ResultCache
    from sqlstash.core.results import FetchAllResult, FetchResult
    from sqlstash.protocols import StatementProtocol

__all__ = ("CachingStatement",)

logger = get_logger("sqlstash.statement")

CACHING_STATEMENT_SLOTS: Final = (
    "_cache",
    "_config",
    "_cursor",
    "_keys",
    "_last_result",
    "_parameters",
    "_preparer",
    "_rows",
    "_sql",
    "_statement",
)


class CachingStatement:
    """Prepared statement whose result sets are served from a :class:`ResultCache`.

    A single instance is not safe for concurrent use; callers must serialize
    access to it.

    Args:
        statement: The underlying prepared statement, or None to prepare it
            with ``preparer`` the first time it is needed.
        sql: The query template the statement was prepared from.
        cache: Result cache shared with other statements.
        config: Cache configuration. Defaults to the process-wide default.
        key_builder: Key builder to reuse. Built from ``config`` when omitted.
        preparer: Callable returning the underlying statement, or a falsy
            failure value. Required when ``statement`` is None.

    Raises:
        ValueError: If neither ``statement`` nor ``preparer`` is given.
    """

    __slots__ = CACHING_STATEMENT_SLOTS

    def __init__(
        self,
        statement: "Optional[StatementProtocol]",
        sql: str,
        cache: "ResultCache",
        config: "Optional[CacheConfig]" = None,
        key_builder: "Optional[CacheKeyBuilder]" = None,
        preparer: "Optional[Callable[[], Any]]" = None,
    ) -> None:
        if statement is None and preparer is None:
            msg = "CachingStatement needs a statement or a preparer"
            raise ValueError(msg)
        self._statement = statement
        self._preparer = preparer
        self._sql = sql
        self._cache = cache
        self._config = config or get_default_config()
        self._keys = key_builder or CacheKeyBuilder(self._config)
        self._parameters: dict[str, Any] = {}
        self._rows: Optional[tuple[Row, ...]] = None
        self._cursor = 0
        self._last_result: Any = None

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def statement(self) -> "Optional[StatementProtocol]":
        """The wrapped statement, None while a lazily prepared one is still pending."""
        return self._statement

    @property
    def parameters(self) -> "dict[str, Any]":
        """A copy of the bound parameters, keyed by marker-prefixed identifier."""
        return dict(self._parameters)

    @property
    def cursor(self) -> int:
        """Offset of the next row ``fetch`` will return."""
        return self._cursor

    @property
    def rows(self) -> "tuple[Row, ...]":
        """The cached result set of the last execution."""
        return self._rows or ()

    @property
    def last_result(self) -> Any:
        """Value returned by the last successful ``execute``."""
        return self._last_result

    @property
    def cache_key(self) -> str:
        """Key the current bound parameters resolve to."""
        return self._keys.key_for(self._sql, self._parameters)

    def _remember(self, identifier: Any, value: Any) -> None:
        self._parameters[normalize_identifier(identifier, self._config.parameter_marker)] = value

    def _merge(self, parameters: "Optional[Mapping[str, Any]]") -> None:
        if parameters:
            for identifier, value in parameters.items():
                self._remember(identifier, value)

    def _current_key(self) -> "Optional[str]":
        if not self._config.enable_caching:
            return None
        return self._keys.key_for(self._sql, self._parameters)

    def _underlying(self) -> Any:
        """Return the underlying statement, preparing it on first use.

        A failed preparation (None or False) is returned as is and retried on
        the next call.
        """
        if self._statement is None and self._preparer is not None:
            prepared = self._preparer()
            if prepared is None or prepared is False:
                log_with_context(logger, logging.DEBUG, "prepare.failed", sql=self._sql)
                return prepared
            self._statement = prepared
        return self._statement

    def bind_value(self, identifier: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind ``value`` to a placeholder and forward the call to the underlying statement."""
        self._remember(identifier, value)
        statement = self._underlying()
        if statement is None or statement is False:
            return statement
        return statement.bind_value(identifier, value, *args, **kwargs)

    def bind_param(self, identifier: str, variable: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind ``variable`` to a placeholder and forward the call to the underlying statement."""
        self._remember(identifier, variable)
        statement = self._underlying()
        if statement is None or statement is False:
            return statement
        return statement.bind_param(identifier, variable, *args, **kwargs)

    def bind_column(self, column: Any, param: Any, *args: Any, **kwargs: Any) -> Any:
        """Bind a result column and forward the call to the underlying statement.

        The binding takes part in the cache key like any other parameter.
        """
        self._remember(column, param)
        statement = self._underlying()
        if statement is None or statement is False:
            return statement
        return statement.bind_column(column, param, *args, **kwargs)

    def replay(self, entry: CacheEntry) -> Any:
        """Serve ``entry`` as the result of the current execution.

        Returns:
            The execution result stored with the entry.
        """
        self._rows = entry.rows
        self._cursor = 0
        self._last_result = entry.result
        return entry.result

    def execute(self, parameters: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Execute the statement, from cache when possible.

        Args:
            parameters: Values for this execution. They override earlier bindings
                for the same identifiers and are remembered for later executions.

        Returns:
            The underlying execution result, replayed from cache on a hit. A
            falsy result from the underlying statement is returned unchanged and
            nothing is cached.
        """
        self._merge(parameters)
        key = self._current_key()
        if key is not None:
            entry = self._cache.load(key)
            if entry is not None:
                log_with_context(logger, logging.DEBUG, "cache.hit", cache_key=key, rows=len(entry.rows))
                return self.replay(entry)
        return self._execute_underlying(key, parameters)

    def execute_and_save(self, parameters: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Execute against the database and save the result set without a cache lookup.

        For callers that have already looked the key up and missed.
        """
        self._merge(parameters)
        return self._execute_underlying(self._current_key(), parameters)

    def _execute_underlying(self, key: "Optional[str]", parameters: "Optional[Mapping[str, Any]]") -> Any:
        statement = self._underlying()
        if statement is None or statement is False:
            return statement

        result = statement.execute(parameters)
        if not result:
            log_with_context(logger, logging.DEBUG, "execute.failed", cache_key=key, result=repr(result))
            return result

        fetched = statement.fetch_all()
        if fetched is False:
            log_with_context(logger, logging.DEBUG, "fetch.failed", cache_key=key)
            return False

        rows = tuple(fetched)
        self._rows = rows
        self._cursor = 0
        self._last_result = result
        if key is not None:
            self._cache.save(key, CacheEntry(rows, result))
            log_with_context(logger, logging.DEBUG, "cache.miss", cache_key=key, rows=len(rows))
        return result

    def fetch(
        self,
        style: "Union[FetchStyle, str]" = FetchStyle.BOTH,
        orientation: "Union[FetchOrientation, str]" = FetchOrientation.NEXT,
        offset: int = 0,
    ) -> "FetchResult":
        """Return the row at the cursor and advance it.

        Returns:
            The formatted row, :data:`END_OF_DATA` once every row has been
            fetched, or :class:`Unsupported` if an option cannot be emulated.
            The cursor only moves when a row is returned.
        """
        try:
            validate_cursor_options(orientation, offset)
            fetch_style = FetchStyle.coerce(style)
        except UnsupportedOptionError as e:
            return Unsupported(e)

        rows = self._rows or ()
        if self._cursor >= len(rows):
            return END_OF_DATA
        row = rows[self._cursor]
        self._cursor += 1
        return format_row(row, fetch_style)

    def fetch_all(
        self,
        style: "Union[FetchStyle, str]" = FetchStyle.BOTH,
        fetch_argument: Any = None,
        ctor_args: "Optional[Any]" = None,
    ) -> "FetchAllResult":
        """Return every cached row without moving the cursor.

        Returns:
            The formatted rows, or :class:`Unsupported` when ``style`` is not
            supported or ``fetch_argument`` / ``ctor_args`` are given.
        """
        try:
            fetch_style = FetchStyle.coerce(style)
            if fetch_argument is not None:
                raise UnsupportedOptionError("fetch_argument", fetch_argument)
            if ctor_args:
                raise UnsupportedOptionError("ctor_args", ctor_args)
        except UnsupportedOptionError as e:
            return Unsupported(e)
        return format_rows(self._rows or (), fetch_style)

    def fetch_column(self, column_index: int = 0) -> Any:
        """Return one column of the next row from the underlying statement.

        This path is not cached. A statement served from cache is prepared
        first; if that fails the failure value is returned.
        """
        statement = self._underlying()
        if statement is None or statement is False:
            return statement
        return statement.fetch_column(column_index)

    def row_count(self) -> int:
        """Number of rows in the cached result set.

        Before the first successful execution the underlying statement's count
        is returned instead, or -1 if it cannot be prepared.
        """
        if self._rows is None:
            statement = self._underlying()
            if statement is None or statement is False:
                return -1
            return statement.row_count()
        return len(self._rows)

    def close(self) -> None:
        if isinstance(self._statement, SupportsClose):
            self._statement.close()

    def __iter__(self) -> "Iterator[Row]":
        while True:
            row = self.fetch()
            if not isinstance(row, Row):
                return
            yield row

    def __repr__(self) -> str:
        return f"CachingStatement(sql={self._sql!r}, rows={len(self.rows)}, cursor={self._cursor})"
