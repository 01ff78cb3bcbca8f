import logging
import sqlite3
from collections.abc import Mapping
from typing import Any, ClassVar, Optional, cast

from sqlnest.adapters.base import DriverAdapter
from sqlnest.adapters.sqlite.config import SqliteConnectionParams, parse_sqlite_dsn
from sqlnest.typing import ParamType

__all__ = ("SqliteAdapter", "SqliteConnection")

logger = logging.getLogger("sqlnest.adapters.sqlite")

SqliteConnection = sqlite3.Connection


class SqliteAdapter(DriverAdapter):
    """Adapter for the standard-library ``sqlite3`` driver.

    Connections are opened in autocommit mode (``isolation_level=None``) so that
    transactions only start on an explicit ``BEGIN`` issued by :meth:`begin`.
    SQLite supports ``:name`` and ``?`` placeholders natively.
    """

    dialect: ClassVar[str] = "sqlite"
    error_types: "ClassVar[tuple[type[Exception], ...]]" = (sqlite3.Error,)

    def __init__(self, database: str = ":memory:") -> None:
        self.database = database or ":memory:"

    @classmethod
    def from_dsn(cls, connection_info: str) -> "SqliteAdapter":
        return cls(parse_sqlite_dsn(connection_info))

    def connect(
        self,
        username: "Optional[str]" = None,
        password: "Optional[str]" = None,
        options: "Optional[Mapping[str, Any]]" = None,
    ) -> SqliteConnection:
        params = cast("SqliteConnectionParams", {"database": self.database, **(options or {})})
        params["isolation_level"] = None
        if params["database"].startswith("file:") and not params.get("uri"):
            logger.debug("Database URI detected (%s), enabling URI mode.", params["database"])
            params["uri"] = True
        return sqlite3.connect(**params)

    def begin(self, connection: SqliteConnection) -> bool:
        connection.execute("BEGIN")
        return True

    def in_transaction(self, connection: SqliteConnection) -> bool:
        return connection.in_transaction

    def last_insert_id(self, connection: SqliteConnection) -> Any:
        row = connection.execute("SELECT last_insert_rowid()").fetchone()
        return row[0] if row else None

    def to_native(self, value: Any, data_type: ParamType) -> Any:
        if ParamType(data_type) is ParamType.BOOL and value is not None:
            return int(bool(value))
        return super().to_native(value, data_type)
