"""Unit tests for the connection wrapper."""

import logging
from unittest.mock import MagicMock

import pytest

from sqlnest.driver import BoundStatement, Connection
from sqlnest.typing import FAILURE, FetchMode, NullPolicy, ParamType


def test_exec_returns_row_count(seeded_connection: Connection) -> None:
    assert seeded_connection.exec("UPDATE item SET qty = 1") == 3
    assert seeded_connection.exec("DELETE FROM item WHERE id = 99") == 0


def test_exec_failure(sqlite_connection: Connection, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.CRITICAL):
        result = sqlite_connection.exec("DELETE FROM missing_table")

    assert result is FAILURE
    assert not result
    assert sqlite_connection.has_error is True
    record = caplog.records[-1]
    assert record.getMessage() == "Statement could not be executed"
    assert record.levelno == logging.CRITICAL
    assert record.extra_fields["statement"] == "DELETE FROM missing_table"


def test_failure_is_distinct_from_falsy_results() -> None:
    assert FAILURE is not False
    assert FAILURE != 0
    assert FAILURE is not None
    assert repr(FAILURE) == "FAILURE"


def test_query_failure(sqlite_connection: Connection) -> None:
    assert sqlite_connection.query("SELECT * FROM missing_table") is FAILURE
    assert sqlite_connection.has_error is True


def test_query_result(seeded_connection: Connection) -> None:
    statement = seeded_connection.query("SELECT name FROM item ORDER BY id")

    assert isinstance(statement, BoundStatement)
    assert statement.last_execute_succeeded is True
    assert statement.fetch_all() == [{"name": "x"}, {"name": "y"}, {"name": "z"}]


def test_run_accepts_row_modes(seeded_connection: Connection) -> None:
    statement = seeded_connection.run("SELECT id FROM item ORDER BY id", FetchMode.NUM)

    assert isinstance(statement, BoundStatement)
    assert statement.fetch_all() == [(1,), (2,), (3,)]


def test_run_rejects_column_mode(
    mock_connection: Connection, mock_adapter: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR):
        assert mock_connection.run("SELECT 1", FetchMode.COLUMN) is FAILURE

    mock_adapter.query.assert_not_called()
    assert mock_connection.has_error is True
    record = caplog.records[-1]
    assert record.getMessage() == "Invalid fetch mode defined"
    assert record.levelno == logging.ERROR


def test_prepare_caches_by_fingerprint(sqlite_connection: Connection) -> None:
    first = sqlite_connection.prepare("SELECT name FROM item WHERE id = :id")
    second = sqlite_connection.prepare("SELECT name FROM item WHERE id = :id")
    other = sqlite_connection.prepare("SELECT name FROM item WHERE id = :id", {"fetch_mode": FetchMode.NUM})

    assert first is second
    assert other is not first
    assert len(sqlite_connection.statement_cache) == 2

    sqlite_connection.clear_statement_cache()
    assert sqlite_connection.prepare("SELECT name FROM item WHERE id = :id") is not first


def test_prepare_cache_hit_reapplies_expected_parameters(sqlite_connection: Connection) -> None:
    query = "SELECT name FROM item WHERE id = :id OR qty = :id"
    first = sqlite_connection.prepare(query)
    assert isinstance(first, BoundStatement)
    first.set_expected_parameters({})

    second = sqlite_connection.prepare(query)

    assert second is first
    assert second.expected_parameters == {"id": 2}
    assert second.bind_value("id", 1, ParamType.INT) is True
    assert set(second.input_parameters) == {"id1", "id2"}


def test_prepare_failure(sqlite_connection: Connection, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.CRITICAL):
        assert sqlite_connection.prepare("SELECT * FROM item WHERE id = :id OR id = ?") is FAILURE

    assert sqlite_connection.has_error is True
    assert caplog.records[-1].getMessage() == "Statement could not be prepared"
    assert len(sqlite_connection.statement_cache) == 0


def test_prepare_on_closed_connection(sqlite_connection: Connection) -> None:
    sqlite_connection.native.close()

    assert sqlite_connection.prepare("SELECT 1") is FAILURE
    assert sqlite_connection.has_error is True


def test_connection_parameters_bound_on_prepare(seeded_connection: Connection) -> None:
    seeded_connection.bind_value(":dept", "A")
    seeded_connection.bind_value("cap", "3", ParamType.INT, NullPolicy.FORCE)

    statement = seeded_connection.prepare("SELECT name FROM item WHERE dept = :dept OR name = :dept ORDER BY id")
    assert isinstance(statement, BoundStatement)
    assert set(statement.input_parameters) == {"dept1", "dept2"}

    statement.execute()
    assert statement.fetch_column_all() == ["x", "y"]

    assert seeded_connection.unbind_value("dept") is True
    assert "dept" not in seeded_connection.parameters
    assert "cap" in seeded_connection.parameters


def test_build_in_string_helper() -> None:
    assert Connection.build_in_string(3) == "?,?,?"
    assert Connection.build_in_string([1, 2], "id") == ":id,:id"


def test_last_insert_id(sqlite_connection: Connection) -> None:
    sqlite_connection.exec("INSERT INTO item (name) VALUES ('new')")
    assert sqlite_connection.last_insert_id() == 1


def test_set_logger(mock_connection: Connection, caplog: pytest.LogCaptureFixture) -> None:
    custom = logging.getLogger("tests.custom")
    mock_connection.set_logger(custom)

    with caplog.at_level(logging.ERROR):
        mock_connection.run("SELECT 1", FetchMode.COLUMN)
    assert caplog.records[-1].name == "tests.custom"

    caplog.clear()
    mock_connection.set_logger(None)
    with caplog.at_level(logging.ERROR):
        mock_connection.run("SELECT 1", FetchMode.COLUMN)
    assert caplog.records == []


def test_close_clears_cache(mock_connection: Connection, mock_adapter: MagicMock) -> None:
    mock_connection.statement_cache.set("key", MagicMock())

    with mock_connection:
        pass

    assert len(mock_connection.statement_cache) == 0
    mock_adapter.close.assert_called_once_with(mock_connection.native)


def test_default_fetch_mode(seeded_connection: Connection) -> None:
    adapter = seeded_connection.adapter
    connection = Connection(seeded_connection.native, adapter, default_fetch_mode=FetchMode.NUM)

    assert connection.query("SELECT id FROM item ORDER BY id").fetch() == (1,)
