# votetrail/store/base.py
"""
Generic table-row store contract.

Rows are plain dicts. Filters are equality-only, combined with AND.
Proof rows are write-once: the contract has no update or delete.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from ..errors import VotetrailError

Row = Dict[str, Any]


class StoreError(VotetrailError):
    """Raised when the persistence backend rejects or fails an operation."""
    pass


class DuplicateRowError(StoreError):
    """Raised when an insert violates a primary key or unique constraint."""
    pass


class RowStore(ABC):
    """Persistence collaborator shared by the generator and the verifier."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """
        Insert a row and return it as stored.

        A uuid4 string id is generated when the table has an ``id`` column
        and the row does not carry one.

        Raises:
            DuplicateRowError: Key already present
            StoreError: Any other backend failure
        """

    @abstractmethod
    def select_one(self, table: str, filters: Row) -> Optional[Row]:
        """Return the first row matching all filters, or None."""

    @abstractmethod
    def select_many(
        self,
        table: str,
        filters: Row,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        """Return all rows matching the filters, optionally ordered by one column."""

    @contextmanager
    def atomic(self) -> Iterator["RowStore"]:
        """
        Run the enclosed inserts in one transaction.

        Backends without multi-statement transactions raise NotImplementedError.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support transactions")
        yield self  # pragma: no cover

    @property
    def supports_atomic(self) -> bool:
        return False

    def close(self) -> None:
        """Release backend resources."""
