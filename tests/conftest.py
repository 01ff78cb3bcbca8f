from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sqlnest.adapters.base import DriverAdapter
from sqlnest.adapters.sqlite import SqliteAdapter
from sqlnest.driver import Connection

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def sqlite_connection() -> Iterator[Connection]:
    adapter = SqliteAdapter()
    connection = Connection(adapter.connect(), adapter)
    connection.exec("CREATE TABLE item (id INTEGER PRIMARY KEY, dept TEXT, name TEXT, qty INTEGER)")
    yield connection
    connection.close()


@pytest.fixture
def seeded_connection(sqlite_connection: Connection) -> Connection:
    sqlite_connection.exec(
        "INSERT INTO item (id, dept, name, qty) VALUES (1, 'A', 'x', 5), (2, 'A', 'y', 0), (3, 'B', 'z', NULL)"
    )
    return sqlite_connection


@pytest.fixture
def mock_adapter() -> MagicMock:
    """Adapter double recording every native call in ``method_calls``."""
    adapter = MagicMock(spec=DriverAdapter)
    adapter.error_types = (RuntimeError,)
    adapter.begin.return_value = True
    adapter.commit.return_value = True
    adapter.rollback.return_value = True
    adapter.in_transaction.return_value = True
    adapter.exec.return_value = 0
    return adapter


@pytest.fixture
def mock_connection(mock_adapter: MagicMock) -> Connection:
    return Connection(MagicMock(name="native"), mock_adapter)
