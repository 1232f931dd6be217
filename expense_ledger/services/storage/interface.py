"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the record store.
This allows us to:
1. Use SQLite in production and an in-memory store in tests
2. Keep the filter/sort engine decoupled from any storage technology
3. Swap in another database without touching the ledger

The interface is intentionally small. Records are append-only: there is
no update and no delete.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from expense_ledger.models.expense import ExpenseDraft, ExpenseRecord
from expense_ledger.queries.filters import ExpensePredicate
from expense_ledger.queries.sorting import SortOrder


def utc_now() -> datetime:
    """Default created_at clock for every store."""
    return datetime.now(timezone.utc)


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Implementations own their lifecycle: open() before first use,
    close() on shutdown.
    """

    @abstractmethod
    async def open(self) -> None:
        """
        Prepare the store for use (connect, create schema).

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by the store."""
        pass

    @abstractmethod
    async def insert_or_get(self, draft: ExpenseDraft) -> tuple[ExpenseRecord, bool]:
        """
        Atomically insert a record, or fetch the one that already has its id.

        Exactly one of any number of concurrent calls with the same id
        performs the insert.

        Args:
            draft: The validated record to insert

        Returns:
            (record, created) - created is False when the id already
            existed, in which case record is the stored one

        Raises:
            StorageError: On any fault other than the id collision
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[ExpenseRecord]:
        """
        Retrieve a record by its id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        predicate: ExpensePredicate,
        order: SortOrder,
    ) -> list[ExpenseRecord]:
        """
        List records matching the predicate in the given order.

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def count_expenses(self) -> int:
        """Number of stored records."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to the storage backend, or the store is not open."""
    pass
