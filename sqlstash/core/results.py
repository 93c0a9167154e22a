"""Outcomes returned by the cached fetch operations.

``fetch`` returns a :class:`~sqlstash.core.rows.Row`, :data:`END_OF_DATA` or
:class:`Unsupported`. ``fetch_all`` returns a list of rows or
:class:`Unsupported`. Both are meant to be pattern-matched::

    match statement.fetch(FetchStyle.ASSOC):
        case Row() as row:
            ...
        case Unsupported(error=error):
            raise error
        case _:
            ...  # END_OF_DATA
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, Literal, NoReturn, Union

from typing_extensions import TypeAlias

from sqlstash.exceptions import UnsupportedOptionError

if TYPE_CHECKING:
    from sqlstash.core.rows import Row

__all__ = ("END_OF_DATA", "EndOfDataType", "FetchAllResult", "FetchResult", "Unsupported")


class _EndOfDataEnum(Enum):
    """Sentinel returned once the cursor has passed the last cached row."""

    END_OF_DATA = 0

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "END_OF_DATA"


EndOfDataType: TypeAlias = Literal[_EndOfDataEnum.END_OF_DATA]
END_OF_DATA: Final = _EndOfDataEnum.END_OF_DATA


@dataclass(frozen=True)
class Unsupported:
    """A fetch request the cached cursor refused to serve.

    Nothing about the statement changes when this is returned.
    """

    error: UnsupportedOptionError

    @property
    def option(self) -> str:
        return self.error.option

    @property
    def value(self) -> Any:
        return self.error.value

    def unwrap(self) -> NoReturn:
        """Raise the carried :class:`UnsupportedOptionError`."""
        raise self.error

    def __bool__(self) -> bool:
        return False


FetchResult: TypeAlias = Union["Row", EndOfDataType, Unsupported]
FetchAllResult: TypeAlias = Union["list[Row]", Unsupported]
