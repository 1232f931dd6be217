"""
Query Resolution Engine

DESIGN DECISION: Filter parameters are resolved into a storage-neutral
ExpensePredicate. The date-boundary arithmetic lives here and only here;
each store translates the resulting predicate into its own query form
(SQL WHERE clause, in-memory filter, ...).

Temporal windows are a small closed set of values:

    AllTime | DayWindow(day) | MonthWindow(year, month) | YearWindow(year)

Every window is an inclusive range of whole calendar days. Its start is
midnight of the first day and its end is 23:59:59.999 of the last day, so
a window always covers complete days.
"""

import calendar
import datetime as dt
from dataclasses import dataclass
from typing import Optional, Union

from expense_ledger.models.expense import ALL_SENTINEL, ExpenseFilters, ExpenseRecord


END_OF_DAY = dt.time(23, 59, 59, 999000)


class _BoundedWindow:
    """Shared behaviour of windows with a first and last day."""

    first_day: dt.date
    last_day: dt.date

    @property
    def start(self) -> dt.datetime:
        """Midnight at the beginning of the first day."""
        return dt.datetime.combine(self.first_day, dt.time.min)

    @property
    def end(self) -> dt.datetime:
        """23:59:59.999 on the last day."""
        return dt.datetime.combine(self.last_day, END_OF_DAY)

    def contains(self, value: Union[dt.date, dt.datetime]) -> bool:
        if isinstance(value, dt.datetime):
            return self.start <= value.replace(tzinfo=None) <= self.end
        return self.first_day <= value <= self.last_day


@dataclass(frozen=True)
class AllTime:
    """No temporal restriction."""

    def contains(self, value: Union[dt.date, dt.datetime]) -> bool:
        return True


@dataclass(frozen=True)
class DayWindow(_BoundedWindow):
    """The whole 24-hour span of one calendar day."""
    day: dt.date

    @property
    def first_day(self) -> dt.date:
        return self.day

    @property
    def last_day(self) -> dt.date:
        return self.day


@dataclass(frozen=True)
class MonthWindow(_BoundedWindow):
    """One calendar month; its length comes from the calendar."""
    year: int
    month: int

    @property
    def first_day(self) -> dt.date:
        return dt.date(self.year, self.month, 1)

    @property
    def last_day(self) -> dt.date:
        _, days_in_month = calendar.monthrange(self.year, self.month)
        return dt.date(self.year, self.month, days_in_month)


@dataclass(frozen=True)
class YearWindow(_BoundedWindow):
    """January 1 through December 31 of one year."""
    year: int

    @property
    def first_day(self) -> dt.date:
        return dt.date(self.year, 1, 1)

    @property
    def last_day(self) -> dt.date:
        return dt.date(self.year, 12, 31)


TemporalWindow = Union[AllTime, DayWindow, MonthWindow, YearWindow]


@dataclass(frozen=True)
class ExpensePredicate:
    """
    Resolved filter: category equality AND temporal window.

    category is None when no category condition applies.
    """
    category: Optional[str] = None
    window: TemporalWindow = AllTime()

    def matches(self, record: ExpenseRecord) -> bool:
        if self.category is not None and record.category != self.category:
            return False
        return self.window.contains(record.date)

    def describe(self) -> dict:
        """Compact representation for logs."""
        description = {"category": self.category, "window": type(self.window).__name__}
        if isinstance(self.window, _BoundedWindow):
            description["from"] = self.window.first_day.isoformat()
            description["to"] = self.window.last_day.isoformat()
        return description


def resolve_window(filters: ExpenseFilters) -> TemporalWindow:
    """
    Resolve the temporal part of the filters.

    specific_date wins over year/month. A month only counts together
    with a year.
    """
    if filters.specific_date is not None:
        return DayWindow(filters.specific_date)
    if filters.year is not None:
        if filters.month is not None:
            return MonthWindow(filters.year, filters.month)
        return YearWindow(filters.year)
    return AllTime()


def resolve_filters(filters: ExpenseFilters) -> ExpensePredicate:
    """Turn filter parameters into a single predicate."""
    category = filters.category
    if not category or category == ALL_SENTINEL:
        category = None
    return ExpensePredicate(category=category, window=resolve_window(filters))
