from typing import Any, Optional

__all__ = (
    "DatabaseError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "SQLStashError",
    "SerializationError",
    "UnsupportedOptionError",
)


class SQLStashError(Exception):
    """Base exception class from which all SQLStash exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLStashError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLStashError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlstash[{install_package or package}]' to install sqlstash with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLStashError):
    """Improper Configuration error.

    Raised when a configuration value cannot be used, such as an unknown hash algorithm.
    """


class SerializationError(SQLStashError):
    """Encoding or decoding of an object failed."""


class UnsupportedOptionError(SQLStashError):
    """A fetch option the cached cursor cannot emulate.

    Covers fetch styles other than BOTH/ASSOC/NUM, cursor orientations other than
    NEXT, nonzero cursor offsets and any extra ``fetch_all`` argument. This is a
    programming error, never a data error.
    """

    option: str
    value: Any

    def __init__(self, option: str, value: Any, message: Optional[str] = None) -> None:
        """Initialize with the rejected option.

        Args:
            option: Name of the rejected option (``fetch_style``, ``cursor_orientation`` ...).
            value: The rejected value.
            message: Optional override for the error message.
        """
        if message is None:
            message = f"Unsupported {option}: {value!r}"
        super().__init__(detail=message)
        self.option = option
        self.value = value


class DatabaseError(SQLStashError):
    """An error raised by the wrapped database driver."""
