"""Unit tests for the lazily opened connection holder."""

from pathlib import Path

import pytest

from sqlnest.adapters.sqlite import SqliteAdapter
from sqlnest.config import ConnectionConfig
from sqlnest.driver import Connection
from sqlnest.exceptions import DatabaseConnectionError, ImproperConfigurationError
from sqlnest.typing import FetchMode


def test_connection_is_opened_once() -> None:
    config = ConnectionConfig("main", "sqlite::memory:")
    assert config.is_connected is False

    connection = config.get_connection()

    assert isinstance(connection, Connection)
    assert config.get_connection() is connection
    assert config.is_connected is True
    assert isinstance(config.adapter, SqliteAdapter)


def test_settings_reach_the_connection(tmp_path: Path) -> None:
    config = ConnectionConfig(
        "file",
        f"sqlite:{tmp_path / 'app.db'}",
        options={"timeout": 2.0},
        statement_cache_size=8,
        default_fetch_mode=FetchMode.NUM,
    )
    connection = config.get_connection()
    try:
        assert connection.statement_cache.max_size == 8
        assert connection.default_fetch_mode is FetchMode.NUM
        assert connection.exec("CREATE TABLE t (id INTEGER)") == 0
        assert (tmp_path / "app.db").exists()
    finally:
        config.close()


def test_close_reopens_on_next_use() -> None:
    config = ConnectionConfig("main", "sqlite::memory:")
    first = config.get_connection()

    config.close()
    assert config.is_connected is False
    config.close()

    assert config.get_connection() is not first


def test_unknown_driver() -> None:
    config = ConnectionConfig("bad", "mssql:server=db")

    with pytest.raises(ImproperConfigurationError):
        config.get_connection()


def test_connection_failure_is_raised(tmp_path: Path) -> None:
    config = ConnectionConfig("broken", f"sqlite:{tmp_path / 'missing' / 'app.db'}")

    with pytest.raises(DatabaseConnectionError, match="broken"):
        config.get_connection()
    assert config.is_connected is False


def test_repr_hides_password() -> None:
    config = ConnectionConfig("main", "sqlite::memory:", "user", "secret")

    assert "secret" not in repr(config)
    assert "main" in repr(config)
