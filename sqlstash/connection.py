"""Caching wrapper around a database connection."""

import functools
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlstash.config import CacheConfig, get_default_config
from sqlstash.core.cache import ResultCache
from sqlstash.core.keys import CacheKeyBuilder
from sqlstash.protocols import SupportsClose
from sqlstash.statement import CachingStatement
from sqlstash.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlstash.protocols import CacheBackendProtocol, ConnectionProtocol

__all__ = ("CachingConnection",)

logger = get_logger("sqlstash.connection")


class CachingConnection:
    """Connection whose statements are served from a shared result cache.

    The cache backend is created by the caller and injected here.

    Args:
        connection: The underlying connection.
        cache: A :class:`ResultCache`, or a bare backend to wrap in one.
        config: Cache configuration. Defaults to the process-wide default.
    """

    __slots__ = ("_cache", "_config", "_connection", "_keys")

    def __init__(
        self,
        connection: "ConnectionProtocol",
        cache: "Union[ResultCache, CacheBackendProtocol]",
        config: "Optional[CacheConfig]" = None,
    ) -> None:
        self._connection = connection
        self._cache = cache if isinstance(cache, ResultCache) else ResultCache(cache)
        self._config = config or get_default_config()
        self._keys = CacheKeyBuilder(self._config)

    @property
    def connection(self) -> "ConnectionProtocol":
        """The wrapped connection."""
        return self._connection

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def config(self) -> CacheConfig:
        return self._config

    def prepare(self, query: str, options: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Prepare ``query`` on the underlying connection.

        Returns:
            A :class:`CachingStatement`, or the underlying failure value
            (None or False) unchanged when preparation fails.
        """
        statement = self._connection.prepare(query, options)
        if statement is None or statement is False:
            log_with_context(logger, logging.DEBUG, "prepare.failed", sql=query)
            return statement
        return CachingStatement(statement, query, self._cache, config=self._config, key_builder=self._keys)

    def query(self, sql: str) -> Any:
        """Run an ad-hoc statement, keyed by its literal text.

        The cache is consulted before anything is prepared. A hit is replayed
        without touching the underlying connection; the returned wrapper only
        prepares the statement if a call needs it, such as ``fetch_column``. On
        a miss the statement is prepared and run and its result set is saved.

        Returns:
            The executed :class:`CachingStatement` on success, or the failure
            value from preparation or execution unchanged.
        """
        if self._config.enable_caching:
            entry = self._cache.load(self._keys.key_for(sql))
            if entry is not None:
                statement = CachingStatement(
                    None,
                    sql,
                    self._cache,
                    config=self._config,
                    key_builder=self._keys,
                    preparer=functools.partial(self._connection.prepare, sql),
                )
                statement.replay(entry)
                log_with_context(logger, logging.DEBUG, "query.hit", sql=sql, rows=len(entry.rows))
                return statement

        statement = self.prepare(sql)
        if not isinstance(statement, CachingStatement):
            return statement
        result = statement.execute_and_save()
        if not result:
            return result
        return statement

    def close(self) -> None:
        if isinstance(self._connection, SupportsClose):
            self._connection.close()

    def __repr__(self) -> str:
        return f"CachingConnection(connection={type(self._connection).__name__}, cache={self._cache!r})"
