import atexit
import contextlib
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Callable, Optional

from sqlnest.config import ConnectionConfig
from sqlnest.driver import Connection
from sqlnest.utils.logging import get_logger

__all__ = ("ConnectionCollection",)

logger = get_logger()


class ConnectionCollection(MutableMapping[str, ConnectionConfig]):
    """Registry of named database connections.

    Example::

        connections = ConnectionCollection()
        connections.add(ConnectionConfig("main", "sqlite:/var/lib/app.db"))
        with connections.get_connection("main").transaction() as db:
            db.exec("DELETE FROM session")
    """

    __slots__ = ("_configs",)

    def __init__(self, configs: "Optional[Mapping[str, ConnectionConfig]]" = None, close_at_exit: bool = False) -> None:
        self._configs: dict[str, ConnectionConfig] = dict(configs or {})
        if close_at_exit:
            atexit.register(self._cleanup_connections)

    def _cleanup_connections(self) -> None:
        """Close every open connection at program exit."""
        for config in self._configs.values():
            with contextlib.suppress(Exception):
                config.close()

    def add(self, config: ConnectionConfig) -> ConnectionConfig:
        """Register ``config`` under its own name, replacing any previous one."""
        self._configs[config.name] = config
        return config

    def all(self) -> "dict[str, ConnectionConfig]":
        return dict(self._configs)

    def has(self, name: str) -> bool:
        return self._configs.get(name) is not None

    def is_empty(self) -> bool:
        return not self._configs

    def filter(
        self, callback: "Optional[Callable[[ConnectionConfig, str], bool]]" = None
    ) -> "ConnectionCollection":
        """Return a new collection with the entries for which ``callback(config, name)`` is true.

        Without a callback, entries holding a falsy value are dropped.
        """
        if callback is None:
            return type(self)({name: config for name, config in self._configs.items() if config})
        return type(self)({name: config for name, config in self._configs.items() if callback(config, name)})

    def get_connection(self, name: str) -> Connection:
        """Return the connection registered as ``name``, opening it if needed.

        Raises:
            KeyError: No connection is registered under ``name``.
            DatabaseConnectionError: The connection could not be opened.
        """
        config = self._configs.get(name)
        if config is None:
            msg = f"No connection found for {name!r}"
            raise KeyError(msg)
        return config.get_connection()

    def close_all(self) -> None:
        for config in self._configs.values():
            config.close()
        logger.debug("Closed %d connection(s)", len(self._configs))

    def __getitem__(self, name: str) -> ConnectionConfig:
        return self._configs[name]

    def __setitem__(self, name: str, config: ConnectionConfig) -> None:
        self._configs[name] = config

    def __delitem__(self, name: str) -> None:
        del self._configs[name]

    def __iter__(self) -> "Iterator[str]":
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._configs)!r})"
