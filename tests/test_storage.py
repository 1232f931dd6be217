"""Tests for the record stores (in-memory and SQLite)."""

import asyncio
import sqlite3
import threading
import time
from datetime import date, datetime, timedelta, timezone

import pytest

from expense_ledger.models.expense import ExpenseDraft, ExpenseFilters
from expense_ledger.queries import ExpensePredicate, SortOrder, resolve_filters
from expense_ledger.services.storage import (
    InMemoryExpenseStorage,
    SQLiteExpenseStorage,
    StorageConnectionError,
    StorageError,
    utc_now,
)


def draft(expense_id, day=date(2024, 1, 1), amount=500, category="Food", description=None):
    return ExpenseDraft(
        id=expense_id,
        amount=amount,
        category=category,
        description=description,
        date=day,
    )


class StallingClock:
    """A clock whose first reading blocks the calling writer for a while."""

    def __init__(self, stall_seconds=0.3):
        self._lock = threading.Lock()
        self._calls = 0
        self._stall_seconds = stall_seconds
        self.first_reading = threading.Event()

    def __call__(self):
        with self._lock:
            n = self._calls
            self._calls += 1
        if n == 0:
            self.first_reading.set()
            time.sleep(self._stall_seconds)
        return datetime(2024, 6, 1, tzinfo=timezone.utc) + timedelta(seconds=n)


class TestInsertOrGet:
    """Atomic insert-or-fetch, run against every store."""

    def test_insert_new(self, storage):
        """Test that a new id is inserted and reported as created."""
        record, created = asyncio.run(storage.insert_or_get(draft("X", description="Lunch")))
        assert created is True
        assert record.id == "X"
        assert record.description == "Lunch"
        assert record.created_at.tzinfo is not None
        assert asyncio.run(storage.count_expenses()) == 1

    def test_duplicate_returns_first_write(self, storage):
        """Test that a second write for the same id returns the first record."""
        first, _ = asyncio.run(storage.insert_or_get(draft("X", amount=500)))
        second, created = asyncio.run(storage.insert_or_get(draft("X", amount=999, category="Other")))
        assert created is False
        assert second == first
        assert second.amount == 500
        assert second.category == "Food"
        assert asyncio.run(storage.count_expenses()) == 1

    def test_get_expense(self, storage):
        """Test lookup by id, including a miss."""
        asyncio.run(storage.insert_or_get(draft("X")))
        assert asyncio.run(storage.get_expense("X")).id == "X"
        assert asyncio.run(storage.get_expense("missing")) is None

    def test_round_trip_preserves_fields(self, storage):
        """Test that stored fields come back unchanged."""
        stored, _ = asyncio.run(storage.insert_or_get(
            draft("ünïcode-id", day=date(2024, 2, 29), amount=1, description="Café"),
        ))
        fetched = asyncio.run(storage.get_expense("ünïcode-id"))
        assert fetched == stored
        assert fetched.date == date(2024, 2, 29)


class TestListExpenses:
    """Filtering and ordering, run against every store."""

    @pytest.fixture
    def populated(self, storage):
        async def populate():
            await storage.insert_or_get(draft("jan-food", date(2023, 1, 1), category="Food"))
            await storage.insert_or_get(draft("dec-travel", date(2023, 12, 31), category="Transport"))
            await storage.insert_or_get(draft("leap-food", date(2024, 2, 29), category="Food"))
            await storage.insert_or_get(draft("mar-food", date(2024, 3, 1), category="Food"))
            await storage.insert_or_get(draft("leap-fun", date(2024, 2, 29), category="Entertainment"))
        asyncio.run(populate())
        return storage

    def list_ids(self, storage, order=SortOrder.DATE_ASC, **filters):
        predicate = resolve_filters(ExpenseFilters(**filters))
        return [record.id for record in asyncio.run(storage.list_expenses(predicate, order))]

    def test_no_filter_returns_everything(self, populated):
        """Test that the AllTime predicate returns every record."""
        assert len(self.list_ids(populated)) == 5

    def test_year_window(self, populated):
        """Test the year window."""
        assert self.list_ids(populated, year=2023) == ["jan-food", "dec-travel"]

    def test_month_window_includes_leap_day(self, populated):
        """Test that the February window includes the leap day."""
        assert self.list_ids(populated, year=2024, month=2) == ["leap-food", "leap-fun"]

    def test_specific_date(self, populated):
        """Test the single-day window."""
        assert self.list_ids(populated, specific_date=date(2024, 3, 1)) == ["mar-food"]

    def test_category(self, populated):
        """Test the category filter."""
        assert self.list_ids(populated, category="Food") == ["jan-food", "leap-food", "mar-food"]

    def test_category_and_window(self, populated):
        """Test category and window combined."""
        assert self.list_ids(populated, category="Food", year=2024, month=2) == ["leap-food"]

    def test_date_desc_tie_break(self, populated):
        """Test that same-day records put the later insert first."""
        ids = self.list_ids(populated, order=SortOrder.DATE_DESC)
        assert ids == ["mar-food", "leap-fun", "leap-food", "dec-travel", "jan-food"]

    def test_newest_first(self, populated):
        """Test that the default order ignores the expense date."""
        ids = self.list_ids(populated, order=SortOrder.NEWEST_FIRST)
        assert ids == ["leap-fun", "mar-food", "leap-food", "dec-travel", "jan-food"]

    def test_empty_result(self, populated):
        """Test a window with no records."""
        assert self.list_ids(populated, year=1999) == []


class TestLifecycle:
    """Store lifecycle."""

    def test_memory_requires_open(self, clock):
        """Test that the memory store refuses use before open."""
        storage = InMemoryExpenseStorage(clock=clock)
        with pytest.raises(StorageConnectionError):
            asyncio.run(storage.insert_or_get(draft("X")))

    def test_sqlite_requires_open(self, tmp_path):
        """Test that the SQLite store refuses use before open."""
        storage = SQLiteExpenseStorage(database_path=str(tmp_path / "ledger.db"))
        with pytest.raises(StorageConnectionError):
            asyncio.run(storage.list_expenses(ExpensePredicate(), SortOrder.NEWEST_FIRST))

    def test_sqlite_rejects_memory_database(self):
        """Test that an in-memory SQLite database is refused."""
        with pytest.raises(ValueError):
            SQLiteExpenseStorage(database_path=":memory:")

    def test_sqlite_data_survives_reopen(self, tmp_path, clock):
        """Test that records persist across store instances."""
        path = str(tmp_path / "ledger.db")
        first = SQLiteExpenseStorage(database_path=path, clock=clock)
        asyncio.run(first.open())
        stored, _ = asyncio.run(first.insert_or_get(draft("X")))
        asyncio.run(first.close())

        second = SQLiteExpenseStorage(database_path=path, clock=clock)
        asyncio.run(second.open())
        assert asyncio.run(second.get_expense("X")) == stored

    def test_sqlite_unopenable_path(self, tmp_path):
        """Test that an unopenable database raises StorageConnectionError."""
        storage = SQLiteExpenseStorage(database_path=str(tmp_path / "missing-dir" / "ledger.db"))
        with pytest.raises(StorageConnectionError):
            asyncio.run(storage.open())

    def test_storage_connection_error_is_storage_error(self):
        """Test the storage exception hierarchy."""
        assert issubclass(StorageConnectionError, StorageError)

    def test_default_clock_shared_by_stores(self, tmp_path):
        """Test that both stores default to the interface clock."""
        assert InMemoryExpenseStorage()._clock is utc_now
        assert SQLiteExpenseStorage(database_path=str(tmp_path / "ledger.db"))._clock is utc_now
        assert utc_now().tzinfo is not None


class TestSQLiteSpecifics:
    """Schema and fault behaviour of the SQLite store."""

    def test_schema(self, sqlite_storage):
        """Test the table columns and the date index."""
        conn = sqlite3.connect(sqlite_storage.database_path)
        try:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(expenses)")]
            indexes = [row[1] for row in conn.execute("PRAGMA index_list(expenses)")]
        finally:
            conn.close()
        assert columns == ["id", "amount", "category", "description", "date", "created_at"]
        assert "idx_expenses_date_created_at" in indexes

    def test_check_constraint_blocks_bad_amounts(self, sqlite_storage):
        """Test that the table itself rejects non-positive amounts."""
        conn = sqlite3.connect(sqlite_storage.database_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO expenses VALUES ('bad', 0, 'Food', NULL, '2024-01-01', '2024-01-01T00:00:00+00:00')"
                )
        finally:
            conn.close()

    def test_storage_fault_raises_storage_error(self, sqlite_storage):
        """Test that a broken database surfaces as StorageError."""
        conn = sqlite3.connect(sqlite_storage.database_path)
        try:
            conn.execute("DROP TABLE expenses")
            conn.commit()
        finally:
            conn.close()

        with pytest.raises(StorageError):
            asyncio.run(sqlite_storage.insert_or_get(draft("X")))
        with pytest.raises(StorageError):
            asyncio.run(sqlite_storage.list_expenses(ExpensePredicate(), SortOrder.NEWEST_FIRST))

    def test_concurrent_same_id_inserts_once(self, sqlite_storage):
        """Exactly one of many racing writers performs the insert."""
        workers = 8
        barrier = threading.Barrier(workers)
        outcomes = []
        errors = []

        def attempt(n):
            try:
                barrier.wait()
                outcomes.append(sqlite_storage._insert_or_get(draft("race", amount=100 + n)))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=attempt, args=(n,)) for n in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sum(1 for _, created in outcomes if created) == 1
        winner = next(record for record, created in outcomes if created)
        assert all(record == winner for record, _ in outcomes)
        assert asyncio.run(sqlite_storage.count_expenses()) == 1

    def test_concurrent_same_id_via_event_loop(self, sqlite_storage):
        """Test the same race driven through the event loop."""
        async def race():
            return await asyncio.gather(*(
                sqlite_storage.insert_or_get(draft("race", amount=100 + n)) for n in range(5)
            ))

        outcomes = asyncio.run(race())
        assert sum(1 for _, created in outcomes if created) == 1
        assert len({record.amount for record, _ in outcomes}) == 1

    def test_created_at_follows_commit_order(self, tmp_path):
        """Test that a writer stalled while stamping cannot commit an older created_at."""
        clock = StallingClock()
        storage = SQLiteExpenseStorage(database_path=str(tmp_path / "ledger.db"), clock=clock)
        asyncio.run(storage.open())

        slow = threading.Thread(target=storage._insert_or_get, args=(draft("slow"),))
        fast = threading.Thread(target=storage._insert_or_get, args=(draft("fast"),))
        slow.start()
        assert clock.first_reading.wait(timeout=5)
        fast.start()
        slow.join()
        fast.join()

        conn = sqlite3.connect(storage.database_path)
        try:
            rows = conn.execute("SELECT id, created_at FROM expenses ORDER BY rowid").fetchall()
        finally:
            conn.close()
        assert [row[0] for row in rows] == ["slow", "fast"]
        assert rows[0][1] < rows[1][1]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
