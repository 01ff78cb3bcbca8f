"""Value coercion applied before a scalar is bound to a statement."""

import math
import re
from typing import Any, Final, Optional

from sqlnest.typing import NullPolicy, ParamType

__all__ = ("coerce_bind_value", "strip_slashes", "to_int")

_NUMERIC_PREFIX: Final = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_ESCAPED: Final = re.compile(r"\\(.?)", re.DOTALL)

_INT_MIN: Final = -(2**63)
_INT_MAX: Final = 2**63 - 1


def to_int(value: Any) -> int:
    """Cast to int with leading-number semantics.

    ``None`` and non-numeric strings become ``0``; ``"12abc"`` becomes ``12``;
    floats are truncated. Infinite and NaN values become ``0`` and results are
    clamped to the signed 64-bit range.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return _clamp(int(value))
    if isinstance(value, float):
        return _float_to_int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", "replace")
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if match is None:
            return 0
        number = match.group().strip()
        if any(char in number for char in ".eE"):
            return _float_to_int(float(number))
        return _clamp(int(number))
    try:
        return _clamp(int(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _clamp(number: int) -> int:
    return max(_INT_MIN, min(_INT_MAX, number))


def _float_to_int(number: float) -> int:
    if not math.isfinite(number):
        return 0
    return _clamp(int(number))


def strip_slashes(value: str) -> str:
    """Remove backslash escaping: ``\\x`` becomes ``x``, ``\\\\`` becomes ``\\`` and ``\\0`` a NUL."""
    return _ESCAPED.sub(lambda match: "\0" if match.group(1) == "0" else match.group(1), value)


def coerce_bind_value(
    value: Any,
    data_type: ParamType,
    null_policy: NullPolicy = NullPolicy.NONE,
    length: "Optional[int]" = None,
) -> "tuple[Any, ParamType]":
    """Apply the null policy and type rules to a scalar.

    Args:
        value: Scalar to bind.
        data_type: Requested bind type.
        null_policy: How empty values and ``None`` are treated.
        length: Maximum length of a string value.

    Returns:
        The value and type to bind. The type becomes ``ParamType.NULL`` whenever
        the value ends up as NULL.
    """
    if data_type is ParamType.INT:
        if null_policy is NullPolicy.FORCE and to_int(value) == 0:
            return None, ParamType.NULL
        if value == "" or (value is None and null_policy is NullPolicy.DISALLOW):
            return 0, data_type
        if value is None:
            return None, ParamType.NULL
        return to_int(value), data_type

    if data_type is ParamType.STR:
        if null_policy is NullPolicy.FORCE and value == "":
            value = None
        elif null_policy is NullPolicy.DISALLOW and value is None:
            value = ""
        elif length and value is not None:
            value = str(value)[:length]

        if value is None:
            return None, ParamType.NULL
        return strip_slashes(value if isinstance(value, str) else str(value)), data_type

    return value, data_type
