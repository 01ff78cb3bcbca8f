import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from sqlnest.adapters import get_adapter
from sqlnest.driver import Connection
from sqlnest.exceptions import DatabaseConnectionError
from sqlnest.typing import FetchMode
from sqlnest.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlnest.adapters.base import DriverAdapter

__all__ = ("ConnectionConfig",)

logger = get_logger("config")


class ConnectionConfig:
    """A named database connection, opened on first use.

    Args:
        name: Name of the connection inside a :class:`~sqlnest.base.ConnectionCollection`.
        dsn: ``driver:connection_info`` string, e.g. ``sqlite::memory:`` or
            ``pgsql:host=localhost;dbname=app``.
        username: Database user. Ignored by drivers without authentication.
        password: Database password.
        options: Driver connect parameters.
        statement_cache_size: Maximum number of cached prepared statements per
            connection. Unbounded when ``None``.
        default_fetch_mode: Row shape used when no fetch mode is given.
        logger: Destination of the connection's structured log records.
    """

    __slots__ = (
        "_adapter",
        "_connection",
        "default_fetch_mode",
        "dsn",
        "logger",
        "name",
        "options",
        "password",
        "statement_cache_size",
        "username",
    )

    def __init__(
        self,
        name: str,
        dsn: str,
        username: str = "",
        password: str = "",
        options: "Optional[Mapping[str, Any]]" = None,
        *,
        statement_cache_size: "Optional[int]" = None,
        default_fetch_mode: FetchMode = FetchMode.ASSOC,
        logger: "Optional[logging.Logger]" = None,
    ) -> None:
        self.name = name
        self.dsn = dsn
        self.username = username
        self.password = password
        self.options = dict(options or {})
        self.statement_cache_size = statement_cache_size
        self.default_fetch_mode = FetchMode(default_fetch_mode)
        self.logger = logger
        self._adapter: Optional[DriverAdapter] = None
        self._connection: Optional[Connection] = None

    @property
    def adapter(self) -> "DriverAdapter":
        """Adapter selected from the DSN prefix."""
        if self._adapter is None:
            self._adapter = get_adapter(self.dsn)
        return self._adapter

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def get_connection(self) -> Connection:
        """Return the connection, opening it on the first call.

        Raises:
            DatabaseConnectionError: The native connection could not be opened.
        """
        if self._connection is not None:
            return self._connection

        adapter = self.adapter
        try:
            native = adapter.connect(self.username or None, self.password or None, self.options)
        except (*adapter.error_types, OSError) as e:
            msg = f"Could not connect to database: {e}"
            raise DatabaseConnectionError(msg, name=self.name) from e

        logger.debug("Opened connection %r (%s)", self.name, adapter.dialect)
        self._connection = Connection(
            native,
            adapter,
            logger=self.logger,
            statement_cache_size=self.statement_cache_size,
            default_fetch_mode=self.default_fetch_mode,
        )
        return self._connection

    def close(self) -> None:
        """Close the connection if it was opened. It is reopened on the next use."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        connection.close()
        logger.debug("Closed connection %r", self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, dsn={self.dsn!r}, username={self.username!r})"
