"""Result-shaping helpers layered over ``fetch``."""

from collections.abc import Hashable, Sequence
from typing import Any, Optional, Union

from mypy_extensions import trait

from sqlnest.typing import FetchMode, ParamKey

__all__ = ("FetchToolsMixin", "insert_keyed")


def insert_keyed(tree: "dict[Any, Any]", path: "Sequence[Hashable]", leaf: Any, append: bool) -> "dict[Any, Any]":
    """Place ``leaf`` in a nested mapping at ``path``.

    Intermediate levels are dicts, created (or replacing a non-dict value) as
    needed. At the last key the leaf either overwrites the current value or,
    when ``append`` is true, is appended to a list stored there.

    Args:
        tree: Root mapping, updated in place.
        path: Keys from the root to the leaf; at least one.
        leaf: Value to store.
        append: Collect leaves sharing a path into a list.

    Returns:
        ``tree``.
    """
    if not path:
        msg = "insert_keyed requires at least one key"
        raise ValueError(msg)

    node = tree
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = node[key] = {}
        node = child

    last = path[-1]
    if append:
        bucket = node.get(last)
        if not isinstance(bucket, list):
            bucket = node[last] = []
        bucket.append(leaf)
    else:
        node[last] = leaf
    return tree


@trait
class FetchToolsMixin:
    """Column and keyed-result helpers for anything exposing ``fetch(mode)``."""

    __slots__ = ()

    def fetch(self, mode: "Optional[FetchMode]" = None) -> Any:
        raise NotImplementedError

    def fetch_column_value(self, key: "Optional[ParamKey]" = None) -> Any:
        """Return one field of the next row.

        Args:
            key: Column name or index. The first field is used when omitted.

        Returns:
            The field value, or ``None`` when there is no row or no such field.
        """
        record = self.fetch()
        if isinstance(record, dict):
            if key is None:
                return next(iter(record.values()), None)
            return record.get(key)
        if isinstance(record, (list, tuple)):
            if key is None:
                return record[0] if record else None
            if isinstance(key, int) and -len(record) <= key < len(record):
                return record[key]
        return None

    def fetch_column_all(
        self, key: "Optional[str]" = None, output: "Optional[Sequence[Any]]" = None
    ) -> "list[Any]":
        """Collect one field of every remaining row.

        Args:
            key: Column name. The first column is used when omitted.
            output: Values to start the result with.

        Returns:
            ``output`` followed by the collected values.
        """
        values = list(output) if output is not None else []
        while (record := self.fetch(FetchMode.ASSOC)) is not None:
            if key is None:
                values.append(next(iter(record.values()), None))
            else:
                values.append(record.get(key))
        return values

    def fetch_all_keyed(
        self,
        key_field: "Union[str, Sequence[str]]",
        remove_key: bool = False,
        return_array: bool = True,
        value_field: "Optional[str]" = None,
    ) -> "dict[Any, Any]":
        """Group the remaining rows into a nested mapping.

        One level of nesting is built per key field, using that field's value in
        each row. With ``return_array`` rows sharing the same keys are collected in a
        list; otherwise the last row wins.

        Args:
            key_field: Column, or columns for multi-level grouping.
            remove_key: Drop the key columns from the stored rows.
            return_array: Append to a list at the leaf instead of overwriting.
            value_field: Store only this column of the row.

        Returns:
            The nested mapping.

        Example::

            stmt.fetch_all_keyed("dept", remove_key=True)
            # {"A": [{"name": "x"}, {"name": "y"}], "B": [{"name": "z"}]}
        """
        keys = [key_field] if isinstance(key_field, str) else list(key_field)
        if not keys:
            msg = "fetch_all_keyed requires at least one key field"
            raise ValueError(msg)

        output: dict[Any, Any] = {}
        while (record := self.fetch(FetchMode.ASSOC)) is not None:
            path = []
            for key in keys:
                path.append(record.get(key))
                if remove_key:
                    record.pop(key, None)
            leaf = record.get(value_field) if value_field is not None else record
            insert_keyed(output, path, leaf, append=return_array)
        return output
