from sqlnest.adapters.sqlite.config import SqliteConnectionParams
from sqlnest.adapters.sqlite.driver import SqliteAdapter, SqliteConnection

__all__ = ("SqliteAdapter", "SqliteConnection", "SqliteConnectionParams")
