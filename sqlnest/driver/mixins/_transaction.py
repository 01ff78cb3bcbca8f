"""Nested transactions emulated with savepoints."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from mypy_extensions import trait

from sqlnest.exceptions import TransactionError
from sqlnest.typing import FAILURE

if TYPE_CHECKING:
    from sqlnest.adapters.base import DriverAdapter

__all__ = ("TransactionMixin",)


@trait
class TransactionMixin:
    """Transaction depth controller.

    Only the outermost ``begin``/``commit``/``rollback`` reach the native
    transaction API. Inner levels map to ``SAVEPOINT LEVEL<n>``, where ``n`` is
    the depth before the inner ``begin``.

    A sticky ``has_error`` flag forces the outermost ``commit`` to roll back.
    """

    __slots__ = ()

    _native: Any
    _adapter: "DriverAdapter"
    _transaction_depth: int
    has_error: bool
    native_errors: "tuple[type[Exception], ...]"

    def exec(self, statement: str) -> Any:
        raise NotImplementedError

    def _log(self, level: int, message: str, **extra_fields: Any) -> None:
        raise NotImplementedError

    @property
    def transaction_depth(self) -> int:
        return self._transaction_depth

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    def begin(self) -> bool:
        """Start a transaction, or a savepoint when one is already open.

        Returns:
            Whether the native begin (or the savepoint statement) succeeded.
        """
        if self._transaction_depth == 0:
            try:
                started = bool(self._adapter.begin(self._native))
            except self.native_errors as e:
                self.has_error = True
                self._log(logging.CRITICAL, "Transaction could not be started", exception=repr(e))
                return False
            if started:
                self._transaction_depth = 1
            return started

        result = self.exec(f"SAVEPOINT LEVEL{self._transaction_depth}")
        self._transaction_depth += 1
        return result is not FAILURE

    def commit(self) -> bool:
        """Commit the current level.

        At the outermost level a pending error turns the commit into a rollback
        and ``False`` is returned. With no transaction started the native commit
        is called as is.
        """
        if self._transaction_depth == 0:
            return self._native_commit()

        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            if self.has_error and self._adapter.in_transaction(self._native):
                self.has_error = False
                self._native_rollback()
                return False
            return self._native_commit()

        return self.exec(f"RELEASE SAVEPOINT LEVEL{self._transaction_depth}") is not FAILURE

    def rollback(self) -> bool:
        """Roll back the current level.

        Raises:
            TransactionError: No transaction is started.
        """
        if self._transaction_depth == 0:
            msg = "Rollback error : There is no transaction started"
            raise TransactionError(msg)

        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self.has_error = False
            return self._native_rollback()

        return self.exec(f"ROLLBACK TO SAVEPOINT LEVEL{self._transaction_depth}") is not FAILURE

    @contextmanager
    def transaction(self) -> "Iterator[Any]":
        """Run the block in a (possibly nested) transaction.

        The level is committed when the block exits normally and rolled back when
        it raises; the exception is re-raised.

        Example::

            with connection.transaction():
                connection.exec("UPDATE account SET balance = balance - 10 WHERE id = 1")
                with connection.transaction():
                    connection.exec("UPDATE account SET balance = balance + 10 WHERE id = 2")
        """
        depth = self._transaction_depth
        self.begin()
        if self._transaction_depth == depth:
            msg = "Transaction could not be started"
            raise TransactionError(msg)
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def _native_commit(self) -> bool:
        try:
            return bool(self._adapter.commit(self._native))
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Transaction could not be committed", exception=repr(e))
            return False

    def _native_rollback(self) -> bool:
        try:
            return bool(self._adapter.rollback(self._native))
        except self.native_errors as e:
            self.has_error = True
            self._log(logging.CRITICAL, "Transaction could not be rolled back", exception=repr(e))
            return False
