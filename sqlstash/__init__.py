"""SQLStash: transparent result caching for prepared statements."""

from sqlstash import adapters, backends, core, exceptions, utils
from sqlstash.__metadata__ import __version__
from sqlstash.adapters import DBAPIConnection, DBAPIStatement
from sqlstash.backends import MemoryCacheBackend, SqliteCacheBackend
from sqlstash.config import CacheConfig, get_default_config, load_config_from_env, set_default_config
from sqlstash.connection import CachingConnection
from sqlstash.core import (
    END_OF_DATA,
    CacheEntry,
    CacheKeyBuilder,
    CacheStats,
    FetchOrientation,
    FetchStyle,
    ResultCache,
    Row,
    Unsupported,
)
from sqlstash.exceptions import (
    DatabaseError,
    ImproperConfigurationError,
    MissingDependencyError,
    SerializationError,
    SQLStashError,
    UnsupportedOptionError,
)
from sqlstash.statement import CachingStatement

__all__ = (
    "END_OF_DATA",
    "CacheConfig",
    "CacheEntry",
    "CacheKeyBuilder",
    "CacheStats",
    "CachingConnection",
    "CachingStatement",
    "DBAPIConnection",
    "DBAPIStatement",
    "DatabaseError",
    "FetchOrientation",
    "FetchStyle",
    "ImproperConfigurationError",
    "MemoryCacheBackend",
    "MissingDependencyError",
    "ResultCache",
    "Row",
    "SQLStashError",
    "SerializationError",
    "SqliteCacheBackend",
    "Unsupported",
    "UnsupportedOptionError",
    "__version__",
    "adapters",
    "backends",
    "core",
    "exceptions",
    "get_default_config",
    "load_config_from_env",
    "set_default_config",
    "utils",
)
