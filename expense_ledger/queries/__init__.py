"""Query and sort resolution package."""

from expense_ledger.queries.filters import (
    AllTime,
    DayWindow,
    ExpensePredicate,
    MonthWindow,
    TemporalWindow,
    YearWindow,
    resolve_filters,
    resolve_window,
)
from expense_ledger.queries.sorting import (
    SortOrder,
    comparator,
    order_by_clause,
    resolve_sort,
    sort_records,
)

__all__ = [
    "AllTime",
    "DayWindow",
    "ExpensePredicate",
    "MonthWindow",
    "TemporalWindow",
    "YearWindow",
    "resolve_filters",
    "resolve_window",
    "SortOrder",
    "comparator",
    "order_by_clause",
    "resolve_sort",
    "sort_records",
]
