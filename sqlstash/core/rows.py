"""Dual-keyed result rows.

A :class:`Row` is an ordered sequence of ``(selector, value)`` pairs. A fetched
database row contributes two adjacent pairs per column: one selected by column
name and one selected by zero-based position, both carrying the same value::

    Row.from_values(["id", "name"], (1, "a"))
    # Row([("id", 1), (0, 1), ("name", "a"), (1, "a")])

Name-only and position-only views are filters over that single sequence.
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Final, Union

from mypy_extensions import mypyc_attr
from typing_extensions import TypeAlias

from sqlstash.exceptions import SerializationError

__all__ = ("Row", "Selector", "is_name_selector", "is_position_selector")

Selector: TypeAlias = Union[str, int]

ROW_SLOTS: Final = ("_pairs",)


def is_name_selector(selector: Any) -> bool:
    """Return True when ``selector`` addresses a column by name."""
    return isinstance(selector, str)


def is_position_selector(selector: Any) -> bool:
    """Return True when ``selector`` addresses a column by position."""
    return isinstance(selector, int) and not isinstance(selector, bool)


@mypyc_attr(allow_interpreted_subclasses=False)
class Row:
    """Ordered association of selectors to column values.

    Args:
        pairs: ``(selector, value)`` pairs in result order.
    """

    __slots__ = ROW_SLOTS

    def __init__(self, pairs: "Iterable[tuple[Selector, Any]]" = ()) -> None:
        self._pairs: tuple[tuple[Selector, Any], ...] = tuple((selector, value) for selector, value in pairs)

    @classmethod
    def from_values(cls, columns: "Sequence[str]", values: "Sequence[Any]") -> "Row":
        """Build a BOTH-shaped row from column names and a value tuple.

        Args:
            columns: Column names, usually taken from ``cursor.description``.
            values: The row values in column order.

        Raises:
            ValueError: If the number of names and values differ.

        Returns:
            A row where each value is reachable by name and by position.
        """
        if len(columns) != len(values):
            msg = f"Row has {len(values)} values for {len(columns)} columns"
            raise ValueError(msg)
        pairs: list[tuple[Selector, Any]] = []
        for position, (name, value) in enumerate(zip(columns, values)):
            pairs.append((name, value))
            pairs.append((position, value))
        return cls(pairs)

    @classmethod
    def from_document(cls, document: Any) -> "Row":
        """Rebuild a row from its stored ``[[selector, value], ...]`` form.

        Raises:
            SerializationError: If the document is not a list of pairs.
        """
        if not isinstance(document, (list, tuple)):
            msg = f"Row document must be a list of pairs, got {type(document).__name__}"
            raise SerializationError(msg)
        pairs: list[tuple[Selector, Any]] = []
        for item in document:
            if not isinstance(item, (list, tuple)) or len(item) != 2:  # noqa: PLR2004
                msg = f"Row document contains a malformed pair: {item!r}"
                raise SerializationError(msg)
            selector, value = item
            if not (is_name_selector(selector) or is_position_selector(selector)):
                msg = f"Row selector must be a column name or position, got {selector!r}"
                raise SerializationError(msg)
            pairs.append((selector, value))
        return cls(pairs)

    def to_document(self) -> "list[list[Any]]":
        """Return the row as JSON-compatible nested lists."""
        return [[selector, value] for selector, value in self._pairs]

    @property
    def pairs(self) -> "tuple[tuple[Selector, Any], ...]":
        """The ``(selector, value)`` pairs in order."""
        return self._pairs

    def selectors(self) -> "list[Selector]":
        return [selector for selector, _ in self._pairs]

    def values(self) -> "list[Any]":
        return [value for _, value in self._pairs]

    def assoc(self) -> "Row":
        """Name-only view of this row."""
        return Row(pair for pair in self._pairs if is_name_selector(pair[0]))

    def num(self) -> "Row":
        """Position-only view of this row."""
        return Row(pair for pair in self._pairs if is_position_selector(pair[0]))

    def as_dict(self) -> "dict[Selector, Any]":
        """Return a plain dict keyed by every selector in the row."""
        return dict(self._pairs)

    def get(self, selector: Selector, default: Any = None) -> Any:
        try:
            return self[selector]
        except KeyError:
            return default

    def __getitem__(self, selector: Selector) -> Any:
        """Look up a value by column name or position.

        Raises:
            KeyError: If no pair carries ``selector``.
        """
        by_name = is_name_selector(selector)
        for candidate, value in self._pairs:
            if candidate == selector and is_name_selector(candidate) is by_name:
                return value
        raise KeyError(selector)

    def __contains__(self, selector: object) -> bool:
        by_name = is_name_selector(selector)
        return any(candidate == selector and is_name_selector(candidate) is by_name for candidate, _ in self._pairs)

    def __iter__(self) -> "Iterator[tuple[Selector, Any]]":
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._pairs == other._pairs
        if isinstance(other, (list, tuple)):
            if not all(isinstance(pair, (list, tuple)) for pair in other):
                return False
            return list(self._pairs) == [tuple(pair) for pair in other]
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Row({list(self._pairs)!r})"
