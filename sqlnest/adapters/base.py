"""Native driver layer shared by every adapter.

An adapter wraps one DB-API 2.0 module. It opens native connections, drives the
native transaction API, and prepares :class:`NativeStatement` objects: DB-API
cursors extended with PDO-style value binding (``bind_value`` then ``execute``)
and fetch modes.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from contextlib import closing
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from sqlnest.exceptions import MissingParameterError, ParameterStyleMismatchError, UnknownParameterError
from sqlnest.parameters import iter_placeholders, normalize_param
from sqlnest.typing import FetchMode, ParamKey, ParamType

if TYPE_CHECKING:
    from sqlnest.typing import Row

__all__ = ("DriverAdapter", "NativeStatement", "resolve_rowcount")


def resolve_rowcount(cursor: Any) -> int:
    """Resolve rowcount from a DB-API cursor.

    Args:
        cursor: Cursor with optional rowcount metadata.

    Returns:
        Positive rowcount value or 0 when unknown.
    """
    try:
        rowcount = cursor.rowcount
    except AttributeError:
        return 0

    if isinstance(rowcount, int) and rowcount > 0:
        return rowcount
    return 0


class NativeStatement:
    """A prepared statement over a DB-API cursor.

    Placeholders are either all named (``:name``) or all positional (``?``);
    positional parameters are addressed 1-based. Values are bound one at a time
    and sent to the driver on :meth:`execute`.
    """

    __slots__ = (
        "_bound",
        "_bound_types",
        "_columns",
        "_compiled_sql",
        "_connection",
        "_cursor",
        "_last_error",
        "_names",
        "_positional_count",
        "adapter",
        "fetch_column",
        "fetch_mode",
        "options",
        "query_string",
    )

    def __init__(
        self,
        adapter: "DriverAdapter",
        connection: Any,
        query_string: str,
        options: "Optional[Mapping[str, Any]]" = None,
    ) -> None:
        self.adapter = adapter
        self.query_string = query_string
        self.options = dict(options or {})

        placeholders = list(iter_placeholders(query_string))
        self._names: tuple[str, ...] = tuple(
            dict.fromkeys(placeholder.name for placeholder in placeholders if placeholder.name is not None)
        )
        self._positional_count = sum(1 for placeholder in placeholders if placeholder.name is None)
        if self._names and self._positional_count:
            raise ParameterStyleMismatchError(sql=query_string)

        self._compiled_sql = adapter.compile_sql(query_string) if placeholders else query_string
        self.fetch_mode = FetchMode(self.options.get("fetch_mode", adapter.default_fetch_mode))
        self.fetch_column = int(self.options.get("fetch_column", 0))
        self._bound: dict[ParamKey, Any] = {}
        self._bound_types: dict[ParamKey, ParamType] = {}
        self._columns: list[str] = []
        self._last_error: Optional[Exception] = None
        self._connection = connection
        self._cursor = connection.cursor()

    @property
    def named_parameters(self) -> "tuple[str, ...]":
        return self._names

    @property
    def positional_count(self) -> int:
        return self._positional_count

    @property
    def bound_parameters(self) -> "dict[ParamKey, tuple[Any, ParamType]]":
        return {key: (value, self._bound_types[key]) for key, value in self._bound.items()}

    @property
    def cursor(self) -> Any:
        return self._cursor

    def bind_value(self, param: ParamKey, value: Any, data_type: ParamType = ParamType.STR) -> bool:
        """Bind ``value`` to a placeholder.

        Raises:
            UnknownParameterError: The statement defines no such placeholder.
        """
        if isinstance(param, int):
            if not 1 <= param <= self._positional_count:
                msg = f"Invalid parameter number: {param}"
                raise UnknownParameterError(msg, self.query_string)
        else:
            param = normalize_param(param)
            if param not in self._names:
                msg = f"Invalid parameter number: parameter :{param} was not defined"
                raise UnknownParameterError(msg, self.query_string)
        self._bound[param] = self.adapter.to_native(value, data_type)
        self._bound_types[param] = data_type
        return True

    def execute(self, params: Any = None) -> bool:
        """Run the statement with the bound values, or with ``params`` when given."""
        arguments = self._build_arguments(params)
        try:
            if arguments is None:
                self._cursor.execute(self._compiled_sql)
            else:
                self._cursor.execute(self._compiled_sql, arguments)
        except self.adapter.error_types as e:
            self._last_error = e
            raise
        self._last_error = None
        self._columns = [column[0] for column in self._cursor.description or ()]
        return True

    def _build_arguments(self, params: Any) -> Any:
        if params is None:
            values = self._bound
        elif isinstance(params, Mapping):
            values = {normalize_param(key): value for key, value in params.items()}
        else:
            if self._names:
                raise ParameterStyleMismatchError(
                    "Positional parameters supplied to a statement with named placeholders", self.query_string
                )
            values = {index: value for index, value in enumerate(params, start=1)}

        if self._names:
            missing = [name for name in self._names if name not in values]
            if missing:
                msg = f"Missing parameters: {', '.join(missing)}"
                raise MissingParameterError(msg, self.query_string)
            return {name: values[name] for name in self._names}
        if self._positional_count:
            positions = range(1, self._positional_count + 1)
            missing_positions = [str(position) for position in positions if position not in values]
            if missing_positions:
                msg = f"Missing positional parameters: {', '.join(missing_positions)}"
                raise MissingParameterError(msg, self.query_string)
            return [values[position] for position in positions]
        return None

    def _shape(self, row: Any, mode: "Optional[FetchMode]") -> "Row":
        mode = FetchMode(mode) if mode is not None else self.fetch_mode
        if mode is FetchMode.NUM:
            return tuple(row)
        if mode is FetchMode.COLUMN:
            return row[self.fetch_column]
        if mode is FetchMode.BOTH:
            shaped: dict[Any, Any] = {}
            for index, (column, value) in enumerate(zip(self._columns, row)):
                shaped[column] = value
                shaped[index] = value
            return shaped
        return dict(zip(self._columns, row))

    def fetch(self, mode: "Optional[FetchMode]" = None) -> "Optional[Row]":
        """Fetch the next row shaped by ``mode``, or ``None`` when exhausted."""
        if self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        if row is None:
            return None
        return self._shape(row, mode)

    def fetch_all(self, mode: "Optional[FetchMode]" = None) -> "list[Row]":
        if self._cursor.description is None:
            return []
        return [self._shape(row, mode) for row in self._cursor.fetchall()]

    def row_count(self) -> int:
        return resolve_rowcount(self._cursor)

    def column_count(self) -> int:
        return len(self._columns)

    def error_info(self) -> "tuple[str, Optional[int], Optional[str]]":
        """Return ``(sqlstate, driver code, message)`` for the last execution."""
        if self._last_error is None:
            return ("00000", None, None)
        sqlstate = getattr(self._last_error, "sqlstate", None) or "HY000"
        code = getattr(self._last_error, "sqlite_errorcode", None)
        return (sqlstate, code, str(self._last_error))

    def close_cursor(self) -> bool:
        """Discard pending rows so the statement can be executed again."""
        self._cursor.close()
        self._cursor = self._connection.cursor()
        self._columns = []
        return True

    def close(self) -> None:
        self._cursor.close()


class DriverAdapter(ABC):
    """Uniform access to one DB-API driver."""

    dialect: ClassVar[str]
    error_types: "ClassVar[tuple[type[Exception], ...]]"
    default_fetch_mode: ClassVar[FetchMode] = FetchMode.ASSOC
    statement_class: "ClassVar[type[NativeStatement]]" = NativeStatement

    @classmethod
    @abstractmethod
    def from_dsn(cls, connection_info: str) -> "DriverAdapter":
        """Build the adapter from the part of a DSN following the driver prefix."""

    @abstractmethod
    def connect(
        self,
        username: "Optional[str]" = None,
        password: "Optional[str]" = None,
        options: "Optional[Mapping[str, Any]]" = None,
    ) -> Any:
        """Open a native connection."""

    @abstractmethod
    def begin(self, connection: Any) -> bool:
        """Start a native transaction."""

    @abstractmethod
    def in_transaction(self, connection: Any) -> bool:
        """Return whether a native transaction is open."""

    @abstractmethod
    def last_insert_id(self, connection: Any) -> Any:
        """Return the id of the most recently inserted row."""

    def commit(self, connection: Any) -> bool:
        connection.commit()
        return True

    def rollback(self, connection: Any) -> bool:
        connection.rollback()
        return True

    def close(self, connection: Any) -> None:
        connection.close()

    def exec(self, connection: Any, sql: str) -> int:
        """Run a statement without parameters and return the affected row count."""
        with closing(connection.cursor()) as cursor:
            cursor.execute(sql)
            return resolve_rowcount(cursor)

    def prepare(self, connection: Any, sql: str, options: "Optional[Mapping[str, Any]]" = None) -> NativeStatement:
        return self.statement_class(self, connection, sql, options)

    def query(self, connection: Any, sql: str, fetch_mode: FetchMode, *fetch_args: Any) -> NativeStatement:
        """Prepare and run ``sql`` in one step."""
        options: dict[str, Any] = {"fetch_mode": FetchMode(fetch_mode)}
        if options["fetch_mode"] is FetchMode.COLUMN:
            options["fetch_column"] = fetch_args[0] if fetch_args else 0
        statement = self.prepare(connection, sql, options)
        statement.execute()
        return statement

    def compile_sql(self, sql: str) -> str:
        """Translate ``:name`` / ``?`` placeholders to the driver's paramstyle."""
        return sql

    def to_native(self, value: Any, data_type: ParamType) -> Any:
        """Convert a bound value to the Python type the driver expects for ``data_type``."""
        data_type = ParamType(data_type)
        if value is None or data_type is ParamType.NULL:
            return None
        if data_type is ParamType.BOOL:
            return bool(value)
        if data_type is ParamType.INT:
            return int(value)
        if data_type is ParamType.LOB:
            return value.encode("utf-8") if isinstance(value, str) else bytes(value)
        if data_type is ParamType.STR and not isinstance(value, str):
            return str(value)
        return value
