from typing import Any, Optional

__all__ = (
    "DatabaseConnectionError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "MissingParameterError",
    "ParameterError",
    "ParameterStyleMismatchError",
    "SQLNestError",
    "TransactionError",
    "UnknownParameterError",
)


class SQLNestError(Exception):
    """Base exception class from which all sqlnest exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLNestError``.

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


class MissingDependencyError(SQLNestError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlnest[{install_package or package}]' to install sqlnest with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLNestError):
    """Improper Configuration error.

    Raised for malformed DSNs and unknown database drivers.
    """


class DatabaseConnectionError(SQLNestError):
    """The native connection handle could not be created.

    Fatal to the connection holder that raised it. The embedding application decides
    whether to retry, report or terminate.
    """

    name: Optional[str]

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        detail_message = message
        if name:
            detail_message = f"{message} (Connection: {name})"
        super().__init__(detail=detail_message)
        self.name = name


class TransactionError(SQLNestError):
    """Invalid use of the transaction API, such as a rollback with no transaction started."""


class ParameterError(SQLNestError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class UnknownParameterError(ParameterError):
    """Raised when binding a parameter the statement does not define."""


class MissingParameterError(ParameterError):
    """Raised when a statement is executed with unbound placeholders."""


class ParameterStyleMismatchError(SQLNestError):
    """Error when parameter style doesn't match SQL placeholder style.

    Raised when a statement mixes named and positional placeholders, or when
    positional parameters are supplied to a statement that only has named ones.
    """

    sql: Optional[str]

    def __init__(self, message: Optional[str] = None, sql: Optional[str] = None) -> None:
        final_message = message
        if final_message is None:
            final_message = "Parameter style mismatch: named and positional placeholders cannot be mixed."

        detail_message = final_message
        if sql:
            detail_message = f"{final_message}\nSQL: {sql}"

        super().__init__(detail=detail_message)
        self.sql = sql
