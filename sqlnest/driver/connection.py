"""Connection wrapper: statement cache, parameter registry and nested transactions."""

import logging
from collections.abc import Mapping, Sized
from typing import TYPE_CHECKING, Any, ClassVar, Final, Optional, Union

from mypy_extensions import mypyc_attr

from sqlnest.driver._statement_cache import StatementCache, make_fingerprint
from sqlnest.driver.mixins import TransactionMixin
from sqlnest.driver.statement import BoundStatement
from sqlnest.exceptions import SQLNestError
from sqlnest.parameters import ParameterRegistry, build_in_string, rewrite_named_parameters
from sqlnest.typing import FAILURE, Failure, FetchMode, NullPolicy, ParamKey, ParamType
from sqlnest.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlnest.adapters.base import DriverAdapter

__all__ = ("RUN_FETCH_MODES", "Connection")

RUN_FETCH_MODES: Final = (FetchMode.ASSOC, FetchMode.NUM, FetchMode.BOTH)


@mypyc_attr(allow_interpreted_subclasses=True)
class Connection(TransactionMixin):
    """Execution context over one native database connection.

    Native faults never escape ``exec``, ``query``, ``run``, ``prepare`` or the
    statements this connection prepares. They set :attr:`has_error`, emit one
    structured log record and make the call return ``FAILURE``. ``has_error``
    stays set until a rollback clears it, so a failure anywhere inside a
    transaction turns the outermost :meth:`commit` into a rollback.

    Args:
        native: DB-API connection opened by ``adapter``.
        adapter: Driver adapter for ``native``.
        logger: Destination of the structured log records.
        statement_cache_size: Maximum number of cached prepared statements.
            Unbounded when ``None``.
        default_fetch_mode: Row shape used when no fetch mode is given.
    """

    __slots__ = (
        "_adapter",
        "_native",
        "_transaction_depth",
        "default_fetch_mode",
        "has_error",
        "logger",
        "native_errors",
        "parameters",
        "statement_cache",
    )

    statement_class: "ClassVar[type[BoundStatement]]" = BoundStatement

    def __init__(
        self,
        native: Any,
        adapter: "DriverAdapter",
        *,
        logger: "Optional[logging.Logger]" = None,
        statement_cache_size: "Optional[int]" = None,
        default_fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> None:
        self._native = native
        self._adapter = adapter
        self._transaction_depth = 0
        self.has_error = False
        self.logger: Optional[logging.Logger] = logger if logger is not None else get_logger("driver")
        self.parameters = ParameterRegistry()
        self.statement_cache = StatementCache(statement_cache_size)
        self.default_fetch_mode = FetchMode(default_fetch_mode)
        self.native_errors: tuple[type[Exception], ...] = (
            *adapter.error_types,
            SQLNestError,
            OverflowError,
            TypeError,
            ValueError,
        )

    @property
    def native(self) -> Any:
        return self._native

    @property
    def adapter(self) -> "DriverAdapter":
        return self._adapter

    def set_logger(self, logger: "Optional[logging.Logger]") -> None:
        """Replace the log destination; ``None`` silences this connection."""
        self.logger = logger

    def _log(self, level: int, message: str, **extra_fields: Any) -> None:
        if self.logger is not None:
            log_with_context(self.logger, level, message, **extra_fields)

    def exec(self, statement: str) -> "Union[int, Failure]":
        """Run a statement without parameters.

        Returns:
            Number of affected rows, or ``FAILURE``.
        """
        try:
            return self._adapter.exec(self._native, statement)
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Statement could not be executed", statement=statement, exception=repr(e))
            return FAILURE

    def query(
        self, statement: str, fetch_mode: "Optional[FetchMode]" = None, *fetch_args: Any
    ) -> "Union[BoundStatement, Failure]":
        """Run a statement directly, without rewriting or caching.

        Args:
            statement: SQL text.
            fetch_mode: Row shape of the result. ``FetchMode.COLUMN`` reads the
                column index from ``fetch_args[0]``.
            *fetch_args: Extra arguments of the fetch mode.

        Returns:
            The executed statement, or ``FAILURE``.
        """
        try:
            mode = FetchMode(fetch_mode) if fetch_mode is not None else self.default_fetch_mode
            native = self._adapter.query(self._native, statement, mode, *fetch_args)
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Statement could not be executed", statement=statement, exception=repr(e))
            return FAILURE
        return self.statement_class(self, native, last_execute_succeeded=True)

    def run(self, statement: str, fetch_mode: FetchMode = FetchMode.ASSOC) -> "Union[BoundStatement, Failure]":
        """Like :meth:`query`, restricted to the ASSOC, NUM and BOTH fetch modes.

        Any other mode is rejected before reaching the driver.
        """
        if fetch_mode not in RUN_FETCH_MODES:
            self.has_error = True
            self._log(logging.ERROR, "Invalid fetch mode defined", mode=fetch_mode)
            return FAILURE
        return self.query(statement, fetch_mode)

    def prepare(
        self, query: str, options: "Optional[Mapping[str, Any]]" = None
    ) -> "Union[BoundStatement, Failure]":
        """Prepare ``query``, reusing a cached statement when possible.

        Repeated named placeholders are numbered first, so
        ``WHERE a = :id OR b = :id`` is prepared as ``WHERE a = :id1 OR b = :id2``.
        Values bound on the connection with :meth:`bind_value` are then bound
        onto the statement for every placeholder it expects.

        Args:
            query: SQL text with ``:name`` or ``?`` placeholders.
            options: Statement options (``fetch_mode``, ``fetch_column``).

        Returns:
            The statement, or ``FAILURE``.
        """
        options = dict(options or {})
        options.setdefault("fetch_mode", self.default_fetch_mode)
        sql, expected = rewrite_named_parameters(query)
        fingerprint = make_fingerprint(sql, options)

        try:
            statement = self.statement_cache.get(fingerprint)
            if statement is None:
                native = self._adapter.prepare(self._native, sql, options)
                statement = self.statement_class(self, native)
                self.statement_cache.set(fingerprint, statement)
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Statement could not be prepared", statement=sql, exception=repr(e))
            return FAILURE

        statement.set_expected_parameters(expected)
        for name, bound in self.parameters.matching(expected):
            statement.bind_value(name, bound.value, bound.data_type, bound.null_policy)
        return statement

    def bind_value(
        self,
        param: ParamKey,
        value: Any,
        data_type: ParamType = ParamType.STR,
        null_policy: NullPolicy = NullPolicy.NONE,
    ) -> None:
        """Bind a value for every statement prepared on this connection from now on."""
        self.parameters.set(param, value, ParamType(data_type), NullPolicy(null_policy))

    def unbind_value(self, param: ParamKey) -> bool:
        return self.parameters.discard(param)

    @staticmethod
    def build_in_string(count: "Union[int, Sized]", key: "Optional[str]" = None) -> str:
        return build_in_string(count, key)

    def last_insert_id(self) -> Any:
        """Return the id of the last inserted row, or ``FAILURE``."""
        try:
            return self._adapter.last_insert_id(self._native)
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Last insert id could not be read", exception=repr(e))
            return FAILURE

    def clear_statement_cache(self) -> None:
        self.statement_cache.clear()

    def close(self) -> None:
        """Drop cached statements and close the native connection."""
        self.statement_cache.clear()
        self._adapter.close(self._native)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
