"""SQLite connection parameters and DSN parsing."""

from typing import TYPE_CHECKING, TypedDict

from typing_extensions import NotRequired

if TYPE_CHECKING:
    import sqlite3

__all__ = ("SqliteConnectionParams", "parse_sqlite_dsn")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[str | None]"
    check_same_thread: NotRequired[bool]
    factory: "NotRequired[type[sqlite3.Connection] | None]"
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


def parse_sqlite_dsn(connection_info: str) -> str:
    """Return the database path of a ``sqlite:`` DSN.

    ``sqlite::memory:`` and an empty path select an in-memory database;
    ``sqlite:///abs/path`` is accepted as well as ``sqlite:/abs/path``.
    """
    database = connection_info.strip()
    if not database or database == ":memory:":
        return ":memory:"
    if database.startswith("///"):
        return database[2:]
    return database
