"""
Sort Resolution

Turns a client sort directive into a total ordering over expense records.

    date_desc  -> date DESC, created_at DESC
    date_asc   -> date ASC,  created_at ASC
    (anything) -> created_at DESC

Ties left after those keys are broken by id ascending, so the same data
always comes back in the same order.
"""

from enum import Enum
from functools import cmp_to_key
from typing import Callable, Iterable, Optional

from expense_ledger.models.expense import ExpenseRecord


class SortOrder(str, Enum):
    """Supported orderings."""
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    NEWEST_FIRST = "newest_first"


# (attribute, descending) pairs, most significant first
_SORT_KEYS = {
    SortOrder.DATE_DESC: (("date", True), ("created_at", True), ("id", False)),
    SortOrder.DATE_ASC: (("date", False), ("created_at", False), ("id", False)),
    SortOrder.NEWEST_FIRST: (("created_at", True), ("id", False)),
}


def resolve_sort(sort_key: Optional[str]) -> SortOrder:
    """Unknown or missing keys fall back to newest-inserted-first."""
    if sort_key == SortOrder.DATE_DESC.value:
        return SortOrder.DATE_DESC
    if sort_key == SortOrder.DATE_ASC.value:
        return SortOrder.DATE_ASC
    return SortOrder.NEWEST_FIRST


def comparator(order: SortOrder) -> Callable[[ExpenseRecord, ExpenseRecord], int]:
    """Build a cmp-style function for the given order."""
    keys = _SORT_KEYS[order]

    def compare(a: ExpenseRecord, b: ExpenseRecord) -> int:
        for attribute, descending in keys:
            left, right = getattr(a, attribute), getattr(b, attribute)
            if left == right:
                continue
            result = -1 if left < right else 1
            return -result if descending else result
        return 0

    return compare


def sort_records(records: Iterable[ExpenseRecord], order: SortOrder) -> list[ExpenseRecord]:
    return sorted(records, key=cmp_to_key(comparator(order)))


def order_by_clause(order: SortOrder) -> str:
    """SQL ORDER BY expression for stores that sort in the database."""
    return ", ".join(
        f"{attribute} {'DESC' if descending else 'ASC'}"
        for attribute, descending in _SORT_KEYS[order]
    )
