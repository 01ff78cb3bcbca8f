"""Placeholder scanning, named-parameter rewriting and the connection parameter registry.

A query may reference the same named placeholder several times. Most DB-API
drivers accept that, but a statement bound value-by-value (the way the
:class:`~sqlnest.driver.BoundStatement` works) needs every occurrence to be
addressable on its own. :func:`rewrite_named_parameters` therefore renames
repeated placeholders to numbered variants and reports how many variants each
original name expands into::

    >>> rewrite_named_parameters("SELECT * FROM t WHERE a = :id OR b = :id")
    ('SELECT * FROM t WHERE a = :id1 OR b = :id2', {'id': 2})
"""

import re
import threading
from collections.abc import Iterable, Iterator, Sized
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Final, NamedTuple, Optional, Union

from sqlnest.typing import NullPolicy, ParamKey, ParamType

__all__ = (
    "REWRITE_CACHE_SIZE",
    "BoundValue",
    "ParameterRegistry",
    "Placeholder",
    "build_in_string",
    "iter_placeholders",
    "normalize_param",
    "rewrite_named_parameters",
)

REWRITE_CACHE_SIZE: Final[int] = 1024

# Literals, comments and casts are matched first so that ":word" text inside them
# is never mistaken for a placeholder.
_PARAMETER_REGEX: Final = re.compile(
    r"""
    (?P<dquote>"(?:[^"\\]|\\.)*") |
    (?P<squote>'(?:[^'\\]|\\.)*') |
    (?P<dollar_quoted_string>\$(?P<dollar_quote_tag>\w*)\$[\s\S]*?\$(?P=dollar_quote_tag)\$) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<pg_q_operator>\?\?|\?\||\?&) |
    (?P<pg_cast>::\w+) |
    (?P<named_colon>:(?P<colon_name>[^\W\d]\w*)) |
    (?P<qmark>\?)
    """,
    re.VERBOSE,
)


class Placeholder(NamedTuple):
    """One placeholder occurrence; ``name`` is ``None`` for ``?``."""

    name: Optional[str]
    start: int
    end: int


def iter_placeholders(sql: str) -> "Iterator[Placeholder]":
    """Yield the named (``:name``) and positional (``?``) placeholders of ``sql`` in order."""
    for match in _PARAMETER_REGEX.finditer(sql):
        if match.group("named_colon"):
            yield Placeholder(match.group("colon_name"), match.start(), match.end())
        elif match.group("qmark"):
            yield Placeholder(None, match.start(), match.end())


@lru_cache(maxsize=REWRITE_CACHE_SIZE)
def _rewrite(query: str) -> "tuple[str, tuple[tuple[str, int], ...]]":
    named = [placeholder for placeholder in iter_placeholders(query) if placeholder.name is not None]

    counts: dict[str, int] = {}
    for placeholder in named:
        counts[placeholder.name] = counts.get(placeholder.name, 0) + 1  # type: ignore[index]

    if all(count == 1 for count in counts.values()):
        return query, tuple(counts.items())

    parts: list[str] = []
    seen: dict[str, int] = {}
    last = 0
    for placeholder in named:
        name = placeholder.name
        if counts[name] == 1:  # type: ignore[index]
            continue
        seen[name] = seen.get(name, 0) + 1  # type: ignore[index]
        parts.append(query[last : placeholder.start])
        parts.append(f":{name}{seen[name]}")  # type: ignore[index]
        last = placeholder.end
    parts.append(query[last:])
    return "".join(parts), tuple(counts.items())


def rewrite_named_parameters(query: str) -> "tuple[str, dict[str, int]]":
    """Number repeated named placeholders.

    Every name occurring *k* > 1 times has its occurrences renamed, left to right,
    to ``:name1`` .. ``:namek``. Names occurring once are left unchanged. The
    result is memoized per query text.

    Args:
        query: Raw SQL text.

    Returns:
        The rewritten SQL and a fresh mapping of every placeholder name to its
        number of occurrences.
    """
    sql, expected = _rewrite(query)
    return sql, dict(expected)


def build_in_string(count: "Union[int, Sized]", key: "Optional[str]" = None) -> str:
    """Build a comma separated placeholder list for an ``IN (...)`` clause.

    Args:
        count: Number of placeholders, or a collection whose length is used.
        key: Placeholder name. ``?`` placeholders are used when omitted.

    Returns:
        ``"''"`` for an empty list, otherwise ``count`` placeholders joined by commas.
    """
    if not isinstance(count, int):
        count = len(count)
    if not count:
        return "''"
    placeholder = f":{key}" if key else "?"
    return ",".join([placeholder] * count)


def normalize_param(param: ParamKey) -> ParamKey:
    """Strip the leading colon of a named parameter."""
    if isinstance(param, str) and param.startswith(":"):
        return param[1:]
    return param


@dataclass(frozen=True)
class BoundValue:
    """A value waiting to be bound, with its bind type and null policy."""

    value: Any
    data_type: ParamType = ParamType.STR
    null_policy: NullPolicy = NullPolicy.NONE


class ParameterRegistry:
    """Connection-wide parameter defaults.

    Values bound here are applied to every statement subsequently prepared on the
    connection whose query expects a placeholder of the same name.
    """

    __slots__ = ("_lock", "_values")

    def __init__(self) -> None:
        self._values: dict[ParamKey, BoundValue] = {}
        self._lock = threading.RLock()

    def set(
        self,
        param: ParamKey,
        value: Any,
        data_type: ParamType = ParamType.STR,
        null_policy: NullPolicy = NullPolicy.NONE,
    ) -> None:
        with self._lock:
            self._values[normalize_param(param)] = BoundValue(value, data_type, null_policy)

    def discard(self, param: ParamKey) -> bool:
        with self._lock:
            self._values.pop(normalize_param(param), None)
        return True

    def get(self, param: ParamKey) -> "Optional[BoundValue]":
        return self._values.get(normalize_param(param))

    def matching(self, names: "Iterable[str]") -> "list[tuple[str, BoundValue]]":
        """Return the registered values for ``names``, in the order given."""
        with self._lock:
            return [(name, self._values[name]) for name in names if name in self._values]

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __contains__(self, param: object) -> bool:
        return isinstance(param, (str, int)) and normalize_param(param) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> "Iterator[ParamKey]":
        return iter(list(self._values))
