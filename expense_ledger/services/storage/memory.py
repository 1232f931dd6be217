"""
In-Memory Storage Implementation

Keeps records in a dict keyed by id. Used for tests and for running the
service without a database file.

insert_or_get relies on dict.setdefault, which inserts or returns the
existing value in a single step, so two calls with the same id can never
both insert.
"""

from datetime import datetime
from typing import Callable, Optional

from expense_ledger.models.expense import ExpenseDraft, ExpenseRecord
from expense_ledger.queries.filters import ExpensePredicate
from expense_ledger.queries.sorting import SortOrder, sort_records
from expense_ledger.services.storage.interface import (
    ExpenseStorageInterface,
    StorageConnectionError,
    utc_now,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Dict-backed expense storage. Contents are lost on close."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utc_now
        self._records: dict[str, ExpenseRecord] = {}
        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise StorageConnectionError("Expense store is not open")

    async def open(self) -> None:
        self._is_open = True

    async def close(self) -> None:
        self._is_open = False
        self._records = {}

    async def insert_or_get(self, draft: ExpenseDraft) -> tuple[ExpenseRecord, bool]:
        self._require_open()
        record = draft.to_record(created_at=self._clock())
        stored = self._records.setdefault(record.id, record)
        return stored, stored is record

    async def get_expense(self, expense_id: str) -> Optional[ExpenseRecord]:
        self._require_open()
        return self._records.get(expense_id)

    async def list_expenses(
        self,
        predicate: ExpensePredicate,
        order: SortOrder,
    ) -> list[ExpenseRecord]:
        self._require_open()
        matching = [record for record in list(self._records.values()) if predicate.matches(record)]
        return sort_records(matching, order)

    async def count_expenses(self) -> int:
        self._require_open()
        return len(self._records)
