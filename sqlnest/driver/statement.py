"""Prepared statement with multiplicity-aware binding and result helpers."""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final, Optional, Union

from mypy_extensions import mypyc_attr

from sqlnest.driver._binding import coerce_bind_value
from sqlnest.driver.mixins import FetchToolsMixin
from sqlnest.parameters import normalize_param
from sqlnest.typing import FAILURE, BindResult, Failure, FetchMode, NullPolicy, ParamKey, ParamType

if TYPE_CHECKING:
    from sqlnest.adapters.base import NativeStatement
    from sqlnest.driver.connection import Connection
    from sqlnest.typing import Row

__all__ = ("BoundStatement", "is_fetch_friendly")

_FETCH_FRIENDLY_PREFIXES: Final = ("SELECT", "SHOW")


def is_fetch_friendly(query: str) -> bool:
    """Return whether ``query`` produces rows (starts with SELECT or SHOW)."""
    return query.lstrip().upper().startswith(_FETCH_FRIENDLY_PREFIXES)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


@mypyc_attr(allow_interpreted_subclasses=True)
class BoundStatement(FetchToolsMixin):
    """A native prepared statement owned by a :class:`~sqlnest.driver.Connection`.

    Values bound to a name that the connection rewrote into numbered variants
    (``:id`` → ``:id1``, ``:id2``) are bound to every variant. Sequences are
    spread over the variants. Faults raised by the native statement are recorded
    on the owning connection's ``has_error`` flag and logged instead of raised.
    """

    __slots__ = (
        "_connection",
        "_expected",
        "_input",
        "_last_execute_succeeded",
        "_native",
        "is_fetch_friendly",
    )

    def __init__(
        self, connection: "Connection", native: "NativeStatement", last_execute_succeeded: "Optional[bool]" = None
    ) -> None:
        self._connection = connection
        self._native = native
        self._expected: dict[str, int] = {}
        self._input: dict[ParamKey, dict[str, Any]] = {}
        self._last_execute_succeeded = last_execute_succeeded
        self.is_fetch_friendly = is_fetch_friendly(native.query_string)

    @property
    def query_string(self) -> str:
        return self._native.query_string

    @property
    def native(self) -> "NativeStatement":
        return self._native

    @property
    def expected_parameters(self) -> "dict[str, int]":
        return dict(self._expected)

    @property
    def input_parameters(self) -> "dict[ParamKey, dict[str, Any]]":
        """Most recently bound ``{"value", "type"}`` per placeholder."""
        return {key: dict(entry) for key, entry in self._input.items()}

    @property
    def last_execute_succeeded(self) -> "Optional[bool]":
        """Outcome of the latest :meth:`execute`; ``None`` before the first one."""
        return self._last_execute_succeeded

    def set_expected_parameters(self, expected: "Mapping[str, int]") -> None:
        self._expected = dict(expected)

    def bind_value(
        self,
        param: ParamKey,
        value: Any,
        data_type: ParamType = ParamType.STR,
        null_policy: NullPolicy = NullPolicy.NONE,
        length: "Optional[int]" = None,
    ) -> BindResult:
        """Bind a value to a placeholder.

        Args:
            param: Placeholder name (leading ``:`` optional) or 1-based position.
            value: Scalar, or a sequence spread over consecutive placeholders.
            data_type: Bind type.
            null_policy: Null coercion applied to the value.
            length: Maximum length of a string value.

        Returns:
            For a sequence, the counter following the last bound placeholder.
            Otherwise whether the (last) native bind succeeded.
        """
        param = normalize_param(param)
        data_type = ParamType(data_type)
        null_policy = NullPolicy(null_policy)

        if _is_sequence(value) and len(value) == 1:
            value = value[0]

        if _is_sequence(value):
            counter = 1
            while True:
                for element in value:
                    field = param + counter - 1 if isinstance(param, int) else f"{param}{counter}"
                    self.bind_value(field, element, data_type, null_policy, length)
                    counter += 1
                if not value or counter > self._expected.get(str(param), 0):
                    break
            return counter

        multiplicity = self._expected.get(param, 0) if isinstance(param, str) else 0
        if multiplicity > 1:
            result = False
            for counter in range(1, multiplicity + 1):
                result = self.bind_value(f"{param}{counter}", value, data_type, null_policy, length)
            return result

        value, data_type = coerce_bind_value(value, data_type, null_policy, length)
        self._input[param] = {"value": value, "type": data_type}

        try:
            return self._native.bind_value(param, value, data_type)
        except self._connection.native_errors as e:
            self._connection.has_error = True
            self._connection._log(
                logging.CRITICAL,
                "Value could not be bound",
                parameter=param,
                value=value,
                type=data_type,
                exception=repr(e),
                debug=self.debug_dump_params(),
            )
            return False

    def execute(self, params: Any = None) -> "Union[BoundStatement, Failure]":
        """Execute the statement.

        Args:
            params: Values used instead of the bound ones. Mapping keys naming a
                rewritten placeholder are spread over its numbered variants.

        Returns:
            The statement, or ``FAILURE`` when the driver raised.
        """
        if isinstance(params, Mapping):
            params = self._expand_mapping(params)

        try:
            succeeded = bool(self._native.execute(params))
        except self._connection.native_errors as e:
            self._last_execute_succeeded = False
            self._connection.has_error = True
            self._connection._log(
                logging.CRITICAL,
                "Statement could not be executed",
                exception=repr(e),
                debug=self.debug_dump_params(),
                input=self.input_parameters,
            )
            return FAILURE

        self._last_execute_succeeded = succeeded
        if not succeeded:
            self._connection._log(
                logging.CRITICAL,
                "Prepared statement could not be executed",
                error=self.error_info(),
                debug=self.debug_dump_params(),
                input=self.input_parameters,
            )
        return self

    def _expand_mapping(self, params: "Mapping[Any, Any]") -> "dict[Any, Any]":
        expanded: dict[Any, Any] = {}
        for key, value in params.items():
            name = normalize_param(key)
            multiplicity = self._expected.get(name, 0) if isinstance(name, str) else 0
            if multiplicity <= 1:
                expanded[name] = value
            elif _is_sequence(value) and len(value) == multiplicity:
                expanded.update((f"{name}{counter}", item) for counter, item in enumerate(value, start=1))
            else:
                expanded.update((f"{name}{counter}", value) for counter in range(1, multiplicity + 1))
        return expanded

    def fetch(self, mode: "Optional[FetchMode]" = None) -> "Optional[Row]":
        """Fetch the next row, or ``None`` when there are no more rows."""
        if not self.is_fetch_friendly:
            self._connection._log(logging.ERROR, "Attempted fetch on non-select/show query", query=self.query_string)
        try:
            return self._native.fetch(mode)
        except self._connection.native_errors as e:
            self._fetch_failed(e)
            return None

    def fetch_all(self, mode: "Optional[FetchMode]" = None) -> "list[Row]":
        if not self.is_fetch_friendly:
            self._connection._log(logging.ERROR, "Attempted fetch on non-select/show query", query=self.query_string)
        try:
            return self._native.fetch_all(mode)
        except self._connection.native_errors as e:
            self._fetch_failed(e)
            return []

    def _fetch_failed(self, error: Exception) -> None:
        self._connection.has_error = True
        self._connection._log(
            logging.CRITICAL, "Rows could not be fetched", query=self.query_string, exception=repr(error)
        )

    def row_count(self) -> int:
        return self._native.row_count()

    def column_count(self) -> int:
        return self._native.column_count()

    def close_cursor(self) -> bool:
        return self._native.close_cursor()

    def error_info(self) -> "tuple[str, Optional[int], Optional[str]]":
        return self._native.error_info()

    def debug_dump_params(self) -> str:
        """Describe the query and the values bound natively, in a PDO-like layout."""
        query = self.query_string
        bound = self._native.bound_parameters
        lines = [f"SQL: [{len(query)}] {query}", f"Params:  {len(bound)}"]
        for key, (_, data_type) in bound.items():
            if isinstance(key, int):
                lines.extend((f"Key: Position #{key - 1}:", f"paramno={key - 1}", "name=[0] \"\""))
            else:
                name = f":{key}"
                lines.extend((f"Key: Name: [{len(name)}] {name}", "paramno=-1", f'name=[{len(name)}] "{name}"'))
            lines.extend(("is_param=1", f"param_type={int(data_type)}"))
        return "\n".join(lines) + "\n"

    def debug(self) -> "dict[str, Any]":
        """Return the input ledger, the expected multiplicities and the query."""
        return {
            "input_parameters": self.input_parameters,
            "expected_parameters": self.expected_parameters,
            "query_string": self.query_string,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.query_string!r})"
