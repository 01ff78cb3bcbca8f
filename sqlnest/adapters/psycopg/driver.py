from collections.abc import Mapping
from typing import Any, ClassVar, Optional, cast

import psycopg
from psycopg.pq import TransactionStatus

from sqlnest.adapters.base import DriverAdapter
from sqlnest.adapters.psycopg.config import PsycopgConnectionParams
from sqlnest.adapters.psycopg.core import convert_placeholders, parse_pgsql_dsn

__all__ = ("PsycopgAdapter", "PsycopgConnection")

PsycopgConnection = psycopg.Connection


class PsycopgAdapter(DriverAdapter):
    """Adapter for the synchronous psycopg 3 driver.

    Connections run in autocommit mode; :meth:`begin` issues ``BEGIN`` itself so
    that the transaction boundaries are exactly the ones requested by the
    caller. Placeholders are translated to pyformat before reaching the driver.
    """

    dialect: ClassVar[str] = "postgres"
    error_types: "ClassVar[tuple[type[Exception], ...]]" = (psycopg.Error,)

    def __init__(self, conninfo: str = "") -> None:
        self.conninfo = conninfo

    @classmethod
    def from_dsn(cls, connection_info: str) -> "PsycopgAdapter":
        return cls(parse_pgsql_dsn(connection_info))

    def connect(
        self,
        username: "Optional[str]" = None,
        password: "Optional[str]" = None,
        options: "Optional[Mapping[str, Any]]" = None,
    ) -> PsycopgConnection:
        params = cast("PsycopgConnectionParams", dict(options or {}))
        if username:
            params["user"] = username
        if password:
            params["password"] = password
        return psycopg.connect(self.conninfo, autocommit=True, **params)

    def begin(self, connection: PsycopgConnection) -> bool:
        connection.execute("BEGIN")
        return True

    def in_transaction(self, connection: PsycopgConnection) -> bool:
        return connection.info.transaction_status != TransactionStatus.IDLE

    def last_insert_id(self, connection: PsycopgConnection) -> Any:
        row = connection.execute("SELECT lastval()").fetchone()
        return row[0] if row else None

    def compile_sql(self, sql: str) -> str:
        return convert_placeholders(sql)
