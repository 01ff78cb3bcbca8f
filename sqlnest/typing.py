from enum import Enum, IntEnum
from typing import Any, Final, Literal, Union

from typing_extensions import TypeAlias, TypeVar

__all__ = (
    "FAILURE",
    "BindResult",
    "Failure",
    "FailureEnum",
    "FetchMode",
    "NullPolicy",
    "ParamKey",
    "ParamType",
    "Row",
    "T",
)

T = TypeVar("T")


class FailureEnum(Enum):
    """Sentinel returned by operations that captured a native fault instead of raising it."""

    FAILURE = 0

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "FAILURE"


FAILURE: Final = FailureEnum.FAILURE
Failure: TypeAlias = Literal[FailureEnum.FAILURE]


class ParamType(IntEnum):
    """Bind types, numbered like the PDO ``PARAM_*`` constants."""

    NULL = 0
    INT = 1
    STR = 2
    LOB = 3
    BOOL = 5


class NullPolicy(IntEnum):
    """How empty values and NULL are coerced when binding.

    ``FORCE`` turns "empty" values into NULL, ``DISALLOW`` turns NULL into the
    type-appropriate empty value, ``NONE`` leaves the value alone.
    """

    NONE = 0
    FORCE = 1
    DISALLOW = 2


class FetchMode(str, Enum):
    """Row shapes produced by ``fetch``."""

    ASSOC = "assoc"
    NUM = "num"
    BOTH = "both"
    COLUMN = "column"

    def __str__(self) -> str:
        return self.value


ParamKey: TypeAlias = Union[str, int]
BindResult: TypeAlias = Union[bool, int]
Row: TypeAlias = Union["dict[Any, Any]", "tuple[Any, ...]", Any]
