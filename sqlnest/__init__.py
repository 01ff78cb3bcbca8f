"""sqlnest: nested transactions, statement caching and safe parameter binding over DB-API drivers."""

from sqlnest import adapters, base, config, driver, exceptions, parameters, typing, utils
from sqlnest.__metadata__ import __version__
from sqlnest.adapters import get_adapter
from sqlnest.base import ConnectionCollection
from sqlnest.config import ConnectionConfig
from sqlnest.driver import BoundStatement, Connection
from sqlnest.exceptions import (
    DatabaseConnectionError,
    ImproperConfigurationError,
    MissingDependencyError,
    ParameterError,
    SQLNestError,
    TransactionError,
)
from sqlnest.parameters import build_in_string, rewrite_named_parameters
from sqlnest.typing import FAILURE, FetchMode, NullPolicy, ParamType
from sqlnest.utils.logging import configure_logging, set_correlation_id

__all__ = (
    "FAILURE",
    "BoundStatement",
    "Connection",
    "ConnectionCollection",
    "ConnectionConfig",
    "DatabaseConnectionError",
    "FetchMode",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "NullPolicy",
    "ParamType",
    "ParameterError",
    "SQLNestError",
    "TransactionError",
    "__version__",
    "adapters",
    "base",
    "build_in_string",
    "config",
    "configure_logging",
    "driver",
    "exceptions",
    "get_adapter",
    "parameters",
    "rewrite_named_parameters",
    "set_correlation_id",
    "typing",
    "utils",
)
