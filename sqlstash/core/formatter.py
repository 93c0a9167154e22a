"""Fetch style projection for cached rows.

Cached rows are stored in the BOTH shape. ASSOC and NUM are pure filters over
it, so all three styles are served from the same cached data.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any, Union

from sqlstash.core.rows import Row
from sqlstash.exceptions import UnsupportedOptionError

__all__ = ("FetchOrientation", "FetchStyle", "format_row", "format_rows", "validate_cursor_options")


class FetchStyle(Enum):
    """Shape in which a row is handed to the caller."""

    BOTH = "both"
    """Values reachable by column name and by position (default)."""
    ASSOC = "assoc"
    """Values reachable by column name only."""
    NUM = "num"
    """Values reachable by position only."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: "Union[FetchStyle, str]") -> "FetchStyle":
        """Convert a style name into a :class:`FetchStyle`.

        Args:
            value: A member or its case-insensitive name.

        Raises:
            UnsupportedOptionError: For any other value.

        Returns:
            The matching style.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnsupportedOptionError("fetch_style", value, f"Fetch style {value!r} is not supported by cached results")


class FetchOrientation(Enum):
    """Cursor movement for a single-row fetch.

    Only NEXT can be emulated over a cached row set.
    """

    NEXT = "next"
    PRIOR = "prior"
    FIRST = "first"
    LAST = "last"
    ABSOLUTE = "absolute"
    RELATIVE = "relative"

    def __str__(self) -> str:
        return self.value


def validate_cursor_options(orientation: "Union[FetchOrientation, str]", offset: Any) -> None:
    """Reject cursor movements other than a plain step forward.

    Raises:
        UnsupportedOptionError: If ``orientation`` is not NEXT or ``offset`` is nonzero.
    """
    if orientation is not FetchOrientation.NEXT and not (
        isinstance(orientation, str) and orientation.lower() == FetchOrientation.NEXT.value
    ):
        msg = f"Cursor orientation {orientation!r} is not supported by cached results, only 'next'"
        raise UnsupportedOptionError("cursor_orientation", orientation, msg)
    if offset != 0:
        msg = f"Cursor offset {offset!r} is not supported by cached results, only 0"
        raise UnsupportedOptionError("cursor_offset", offset, msg)


def format_row(row: Row, style: "Union[FetchStyle, str]" = FetchStyle.BOTH) -> Row:
    """Project one cached row into ``style``.

    Raises:
        UnsupportedOptionError: If ``style`` is not BOTH, ASSOC or NUM.
    """
    return _project(row, FetchStyle.coerce(style))


def format_rows(rows: "Iterable[Row]", style: "Union[FetchStyle, str]" = FetchStyle.BOTH) -> "list[Row]":
    """Project a cached row set into ``style``.

    The style is checked before any row is touched, so no partial result is
    ever produced.

    Raises:
        UnsupportedOptionError: If ``style`` is not BOTH, ASSOC or NUM.
    """
    fetch_style = FetchStyle.coerce(style)
    return [_project(row, fetch_style) for row in rows]


def _project(row: Row, style: FetchStyle) -> Row:
    if style is FetchStyle.BOTH:
        return row
    if style is FetchStyle.ASSOC:
        return row.assoc()
    if style is FetchStyle.NUM:
        return row.num()
    raise UnsupportedOptionError("fetch_style", style)  # pragma: no cover
