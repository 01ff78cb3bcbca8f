"""Per-connection cache of prepared statements."""

import hashlib
import threading
from collections import OrderedDict
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from sqlnest.driver.statement import BoundStatement

__all__ = ("StatementCache", "make_fingerprint")


def make_fingerprint(query: str, options: "Mapping[str, Any]") -> str:
    """Stable key for a (rewritten query, option set) pair; option order is irrelevant."""
    normalized = sorted((repr(key), repr(value)) for key, value in options.items())
    return hashlib.sha256(repr((query, normalized)).encode("utf-8")).hexdigest()


class StatementCache:
    """Fingerprint → prepared statement map.

    Unbounded by default, so a statement lives as long as its connection. With
    ``max_size`` set, the least recently used entry is dropped when full.
    """

    __slots__ = ("_cache", "_lock", "_max_size")

    def __init__(self, max_size: "Optional[int]" = None) -> None:
        if max_size is not None and max_size < 1:
            msg = f"max_size must be a positive integer or None, got {max_size}"
            raise ValueError(msg)
        self._cache: OrderedDict[str, BoundStatement] = OrderedDict()
        self._max_size = max_size
        self._lock = threading.RLock()

    @property
    def max_size(self) -> "Optional[int]":
        return self._max_size

    def get(self, fingerprint: str) -> "Optional[BoundStatement]":
        with self._lock:
            entry = self._cache.get(fingerprint)
            if entry is not None and self._max_size is not None:
                self._cache.move_to_end(fingerprint)
            return entry

    def set(self, fingerprint: str, statement: "BoundStatement") -> None:
        with self._lock:
            if fingerprint in self._cache:
                self._cache.move_to_end(fingerprint)
            elif self._max_size is not None and len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
            self._cache[fingerprint] = statement

    def discard(self, fingerprint: str) -> bool:
        with self._lock:
            return self._cache.pop(fingerprint, None) is not None

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._cache

    def __len__(self) -> int:
        return len(self._cache)
