"""Execution engine: the connection wrapper and its prepared statements."""

from sqlnest.driver import mixins
from sqlnest.driver._statement_cache import StatementCache, make_fingerprint
from sqlnest.driver.connection import RUN_FETCH_MODES, Connection
from sqlnest.driver.statement import BoundStatement, is_fetch_friendly

__all__ = (
    "RUN_FETCH_MODES",
    "BoundStatement",
    "Connection",
    "StatementCache",
    "is_fetch_friendly",
    "make_fingerprint",
    "mixins",
)
