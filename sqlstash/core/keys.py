"""Cache key construction.

A key is the hex digest of the *resolved* query: the template with every
named placeholder replaced by the string form of its bound value. Substitution
is plain text replacement in parameter order. Identifiers that are a prefix of
another (``:id`` and ``:identifier``) can therefore corrupt each other, and
whitespace or value formatting differences produce different keys.
"""

import hashlib
from collections.abc import Mapping
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlstash.config import DEFAULT_HASH_ALGORITHM, DEFAULT_PARAMETER_MARKER, CacheConfig
from sqlstash.exceptions import ImproperConfigurationError

__all__ = ("CacheKeyBuilder", "digest", "normalize_identifier", "resolve_query")

KEY_BUILDER_SLOTS: Final = ("_algorithm", "_marker", "_prefix")


def normalize_identifier(identifier: Any, marker: str = DEFAULT_PARAMETER_MARKER) -> str:
    """Return ``identifier`` with its leading placeholder marker.

    >>> normalize_identifier("id")
    ':id'
    >>> normalize_identifier(":id")
    ':id'
    """
    name = str(identifier)
    if name.startswith(marker):
        return name
    return f"{marker}{name}"


def resolve_query(
    template: str, parameters: "Mapping[Any, Any]", marker: str = DEFAULT_PARAMETER_MARKER
) -> str:
    """Substitute bound values into a query template.

    Args:
        template: Query text with ``:name`` placeholders.
        parameters: Bound values keyed by identifier, with or without marker.
        marker: Placeholder marker.

    Values are substituted as ``str(value)``, so values with the same text
    (``None`` and ``"None"``, ``True`` and ``"True"``) resolve identically.

    Returns:
        The resolved query text.
    """
    resolved = template
    for identifier, value in parameters.items():
        resolved = resolved.replace(normalize_identifier(identifier, marker), str(value))
    return resolved


def digest(text: str, algorithm: str = DEFAULT_HASH_ALGORITHM) -> str:
    """Return the hex digest of ``text``.

    Raises:
        ImproperConfigurationError: If ``algorithm`` is unknown to hashlib.
    """
    data = text.encode("utf-8")
    if algorithm == DEFAULT_HASH_ALGORITHM:
        return hashlib.md5(data, usedforsecurity=False).hexdigest()
    try:
        return hashlib.new(algorithm, data, usedforsecurity=False).hexdigest()
    except (ValueError, TypeError) as e:
        msg = f"Hash algorithm {algorithm!r} cannot be used for cache keys"
        raise ImproperConfigurationError(msg) from e


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheKeyBuilder:
    """Builds cache keys using one configuration.

    Args:
        config: Cache configuration. Defaults to :class:`CacheConfig` defaults.
    """

    __slots__ = KEY_BUILDER_SLOTS

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        config = (config or CacheConfig()).ensure_valid()
        self._algorithm = config.hash_algorithm
        self._marker = config.parameter_marker
        self._prefix = config.key_prefix

    def resolve(self, template: str, parameters: "Mapping[Any, Any]") -> str:
        return resolve_query(template, parameters, self._marker)

    def digest(self, text: str) -> str:
        return f"{self._prefix}{digest(text, self._algorithm)}"

    def key_for(self, template: str, parameters: "Optional[Mapping[Any, Any]]" = None) -> str:
        """Return the cache key for ``template`` with ``parameters`` bound."""
        return self.digest(self.resolve(template, parameters or {}))

    def __repr__(self) -> str:
        return f"CacheKeyBuilder(algorithm={self._algorithm!r}, prefix={self._prefix!r})"
