"""JSON encoding used by the structured log formatter."""

from typing import Any

import msgspec

__all__ = ("encode_json",)


def _default(value: Any) -> Any:
    if isinstance(value, BaseException):
        return repr(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


_encoder = msgspec.json.Encoder(enc_hook=_default)


def encode_json(data: Any) -> str:
    """Encode data to a JSON string, falling back to ``str()`` for unknown types."""
    return _encoder.encode(data).decode("utf-8")
