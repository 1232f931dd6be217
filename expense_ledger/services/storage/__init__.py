"""
Storage Services Package

Provides the abstract record store interface and its implementations:
SQLite (default) and in-memory.
"""

from expense_ledger.services.storage.interface import (
    ExpenseStorageInterface,
    StorageConnectionError,
    StorageError,
    utc_now,
)
from expense_ledger.services.storage.memory import InMemoryExpenseStorage
from expense_ledger.services.storage.sqlite import SQLiteExpenseStorage

__all__ = [
    # Interface
    "ExpenseStorageInterface",
    "utc_now",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryExpenseStorage",
    "SQLiteExpenseStorage",
]
