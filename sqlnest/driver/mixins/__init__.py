"""Driver mixins for transaction nesting and result shaping."""

from sqlnest.driver.mixins._result_tools import FetchToolsMixin, insert_keyed
from sqlnest.driver.mixins._transaction import TransactionMixin

__all__ = ("FetchToolsMixin", "TransactionMixin", "insert_keyed")
