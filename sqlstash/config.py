"""Configuration for the result cache.

Settings are held in an immutable :class:`CacheConfig`. A process-wide default
can be read from the environment with :func:`load_config_from_env` or installed
explicitly with :func:`set_default_config`.
"""

import hashlib
import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Optional

from sqlstash.exceptions import ImproperConfigurationError
from sqlstash.utils.logging import get_logger

__all__ = (
    "DEFAULT_HASH_ALGORITHM",
    "DEFAULT_PARAMETER_MARKER",
    "CacheConfig",
    "get_default_config",
    "load_config_from_env",
    "set_default_config",
)

logger = get_logger("sqlstash.config")

DEFAULT_HASH_ALGORITHM = "md5"
DEFAULT_PARAMETER_MARKER = ":"


@dataclass(frozen=True)
class CacheConfig:
    """Result cache configuration.

    Attributes:
        enable_caching: When False every execute goes to the database and nothing is saved.
        key_prefix: Namespace prepended to every cache key.
        hash_algorithm: Name of a :mod:`hashlib` algorithm used to digest resolved queries.
        parameter_marker: Character that introduces a named placeholder.
    """

    enable_caching: bool = True
    key_prefix: str = ""
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    parameter_marker: str = DEFAULT_PARAMETER_MARKER

    def validate(self) -> "list[str]":
        """Validate configuration consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.hash_algorithm not in hashlib.algorithms_available:
            errors.append(f"hash_algorithm {self.hash_algorithm!r} is not available in hashlib")
        elif self.hash_algorithm.startswith("shake_"):
            errors.append("hash_algorithm must produce a fixed-length digest")
        if len(self.parameter_marker) != 1:
            errors.append("parameter_marker must be a single character")
        return errors

    def ensure_valid(self) -> "CacheConfig":
        """Raise if the configuration is unusable.

        Raises:
            ImproperConfigurationError: If :meth:`validate` reports any error.

        Returns:
            The configuration itself.
        """
        errors = self.validate()
        if errors:
            raise ImproperConfigurationError(detail="; ".join(errors))
        return self

    def replace(self, **changes: Any) -> "CacheConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


_default_config: Optional[CacheConfig] = None
_config_lock = threading.Lock()


def get_default_config() -> CacheConfig:
    """Return the process-wide default configuration.

    The first call loads it from the environment.
    """
    global _default_config  # noqa: PLW0603
    with _config_lock:
        if _default_config is None:
            _default_config = load_config_from_env()
        return _default_config


def set_default_config(config: Optional[CacheConfig]) -> None:
    """Install a process-wide default configuration.

    Args:
        config: New default, or None to reload from the environment on next access.
    """
    global _default_config  # noqa: PLW0603
    if config is not None:
        config.ensure_valid()
    with _config_lock:
        _default_config = config


def load_config_from_env() -> CacheConfig:
    """Load configuration from environment variables.

    Environment Variables Supported:
    - SQLSTASH_ENABLE_CACHING: Enable/disable result caching (true/false)
    - SQLSTASH_KEY_PREFIX: Namespace prepended to cache keys
    - SQLSTASH_HASH_ALGORITHM: hashlib algorithm for cache keys
    - SQLSTASH_PARAMETER_MARKER: Named placeholder marker

    Returns:
        CacheConfig loaded from environment variables
    """
    config = CacheConfig(
        enable_caching=_env_bool("SQLSTASH_ENABLE_CACHING", True),
        key_prefix=os.getenv("SQLSTASH_KEY_PREFIX", ""),
        hash_algorithm=os.getenv("SQLSTASH_HASH_ALGORITHM", DEFAULT_HASH_ALGORITHM).lower(),
        parameter_marker=os.getenv("SQLSTASH_PARAMETER_MARKER", DEFAULT_PARAMETER_MARKER),
    )
    errors = config.validate()
    if errors:
        logger.warning("Invalid cache configuration in environment (%s), using defaults", "; ".join(errors))
        return CacheConfig(enable_caching=config.enable_caching, key_prefix=config.key_prefix)
    return config


def _env_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on", "enabled")
