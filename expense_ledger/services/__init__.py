"""Services package."""

from expense_ledger.services.client import (
    ExpenseClient,
    ExpenseClientError,
    ExpenseRequestRejected,
    ExpenseServiceUnavailable,
)
from expense_ledger.services.storage import (
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    SQLiteExpenseStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Client
    "ExpenseClient",
    "ExpenseClientError",
    "ExpenseRequestRejected",
    "ExpenseServiceUnavailable",
    # Storage services
    "ExpenseStorageInterface",
    "InMemoryExpenseStorage",
    "SQLiteExpenseStorage",
    "StorageConnectionError",
    "StorageError",
]
