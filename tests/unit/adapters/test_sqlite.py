"""Unit tests for the SQLite adapter."""

import sqlite3

import pytest

from sqlnest.adapters import get_adapter
from sqlnest.adapters.base import NativeStatement, resolve_rowcount
from sqlnest.adapters.sqlite import SqliteAdapter
from sqlnest.adapters.sqlite.config import parse_sqlite_dsn
from sqlnest.exceptions import MissingParameterError, ParameterStyleMismatchError, UnknownParameterError
from sqlnest.typing import FetchMode, ParamType


@pytest.mark.parametrize(
    ("connection_info", "database"),
    [("", ":memory:"), (":memory:", ":memory:"), ("/tmp/app.db", "/tmp/app.db"), ("///tmp/app.db", "/tmp/app.db")],
)
def test_parse_sqlite_dsn(connection_info: str, database: str) -> None:
    assert parse_sqlite_dsn(connection_info) == database


def test_connection_is_in_manual_transaction_mode() -> None:
    adapter = SqliteAdapter()
    connection = adapter.connect()
    try:
        assert connection.isolation_level is None
        assert adapter.in_transaction(connection) is False
        assert adapter.begin(connection) is True
        assert adapter.in_transaction(connection) is True
        assert adapter.rollback(connection) is True
        assert adapter.in_transaction(connection) is False
    finally:
        adapter.close(connection)


def test_username_and_password_are_ignored() -> None:
    adapter = get_adapter("sqlite::memory:")
    connection = adapter.connect("user", "secret", {"timeout": 1.0})
    try:
        assert adapter.exec(connection, "CREATE TABLE t (id INTEGER)") == 0
    finally:
        connection.close()


def test_native_statement_binding() -> None:
    adapter = SqliteAdapter()
    connection = adapter.connect()
    try:
        adapter.exec(connection, "CREATE TABLE t (id INTEGER, flag INTEGER, body BLOB)")
        statement = adapter.prepare(connection, "INSERT INTO t VALUES (:id, :flag, :body)")

        assert statement.named_parameters == ("id", "flag", "body")
        statement.bind_value(":id", "4", ParamType.INT)
        statement.bind_value("flag", True, ParamType.BOOL)
        statement.bind_value("body", "raw", ParamType.LOB)
        assert statement.bound_parameters == {
            "id": (4, ParamType.INT),
            "flag": (1, ParamType.BOOL),
            "body": (b"raw", ParamType.LOB),
        }
        assert statement.execute() is True
        assert statement.row_count() == 1

        result = adapter.query(connection, "SELECT id, flag, body FROM t", FetchMode.NUM)
        assert result.fetch() == (4, 1, b"raw")
        assert adapter.last_insert_id(connection) == 1
    finally:
        connection.close()


def test_native_statement_rejects_unknown_and_missing_parameters() -> None:
    adapter = SqliteAdapter()
    connection = adapter.connect()
    try:
        statement = adapter.prepare(connection, "SELECT ? + ?")
        assert statement.positional_count == 2

        with pytest.raises(UnknownParameterError):
            statement.bind_value(3, 1)
        statement.bind_value(1, 1, ParamType.INT)
        with pytest.raises(MissingParameterError):
            statement.execute()
        with pytest.raises(ParameterStyleMismatchError):
            NativeStatement(adapter, connection, "SELECT :a, ?")
    finally:
        connection.close()


def test_native_statement_error_info() -> None:
    adapter = SqliteAdapter()
    connection = adapter.connect()
    try:
        statement = adapter.prepare(connection, "SELECT * FROM missing")
        assert statement.error_info() == ("00000", None, None)

        with pytest.raises(sqlite3.OperationalError):
            statement.execute()
        sqlstate, _, message = statement.error_info()
        assert sqlstate == "HY000"
        assert message is not None
        assert "missing" in message
    finally:
        connection.close()


def test_resolve_rowcount() -> None:
    class _Cursor:
        rowcount = -1

    assert resolve_rowcount(_Cursor()) == 0
    assert resolve_rowcount(object()) == 0
