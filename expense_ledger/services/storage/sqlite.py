"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the default record store because:
1. The PRIMARY KEY on id gives us the uniqueness constraint for free
2. INSERT ... ON CONFLICT DO NOTHING plus a read inside one
   BEGIN IMMEDIATE transaction is an atomic insert-or-fetch
3. WAL journaling lets readers proceed while a writer holds the lock
4. No server to run for a single-client ledger

Each operation opens its own connection and closes it when done, so no
connection is shared between concurrent requests. All coordination
between writers happens inside SQLite.

Blocking sqlite3 calls run in a worker thread so the event loop stays free.
"""

import asyncio
import sqlite3
from datetime import date, datetime
from typing import Callable, Optional

from expense_ledger.models.expense import ExpenseDraft, ExpenseRecord
from expense_ledger.queries.filters import AllTime, ExpensePredicate
from expense_ledger.queries.sorting import SortOrder, order_by_clause
from expense_ledger.services.storage.interface import (
    ExpenseStorageInterface,
    StorageConnectionError,
    StorageError,
    utc_now,
)


EXPENSE_COLUMNS = [
    "id",
    "amount",
    "category",
    "description",
    "date",
    "created_at",
]

_SELECT_EXPENSES = f"SELECT {', '.join(EXPENSE_COLUMNS)} FROM expenses"

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS expenses (
        id TEXT PRIMARY KEY,
        amount INTEGER NOT NULL CHECK (amount > 0),
        category TEXT NOT NULL,
        description TEXT,
        date TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_expenses_date_created_at
        ON expenses (date, created_at);
"""


class SQLiteExpenseStorage(ExpenseStorageInterface):
    """
    SQLite implementation of expense storage.

    Dates are stored as YYYY-MM-DD text and created_at as fixed-width
    ISO-8601 UTC text, so both sort correctly as strings.
    """

    def __init__(
        self,
        database_path: str = "expenses.db",
        busy_timeout_seconds: float = 5.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the store.

        Args:
            database_path: Path to SQLite database file. In-memory
                databases are not supported because every operation
                uses its own connection.
            busy_timeout_seconds: How long to wait for a locked database
            clock: Source of created_at timestamps (UTC)
        """
        if database_path == ":memory:" or database_path.startswith("file::memory:"):
            raise ValueError("SQLiteExpenseStorage needs a database file; use InMemoryExpenseStorage instead")
        self._database_path = database_path
        self._busy_timeout = busy_timeout_seconds
        self._clock = clock or utc_now
        self._is_open = False

    @property
    def database_path(self) -> str:
        return self._database_path

    def _raw_connection(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._database_path,
                timeout=self._busy_timeout,
                isolation_level=None,
            )
        except sqlite3.Error as e:
            raise StorageConnectionError(f"Failed to open database {self._database_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _connection(self) -> sqlite3.Connection:
        if not self._is_open:
            raise StorageConnectionError("Expense store is not open")
        return self._raw_connection()

    def _record_to_params(self, record: ExpenseRecord) -> tuple:
        """Convert an ExpenseRecord to INSERT parameters."""
        return (
            record.id,
            record.amount,
            record.category,
            record.description,
            record.date.isoformat(),
            record.created_at.isoformat(timespec="microseconds"),
        )

    def _row_to_record(self, row: sqlite3.Row) -> ExpenseRecord:
        """Convert a database row to an ExpenseRecord."""
        return ExpenseRecord(
            id=row["id"],
            amount=row["amount"],
            category=row["category"],
            description=row["description"],
            date=date.fromisoformat(row["date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _create_schema(self) -> None:
        conn = self._raw_connection()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StorageConnectionError(f"Failed to initialize database: {e}") from e
        finally:
            conn.close()

    async def open(self) -> None:
        """Create the expenses table if it doesn't exist."""
        await asyncio.to_thread(self._create_schema)
        self._is_open = True

    async def close(self) -> None:
        self._is_open = False

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _insert_or_get(self, draft: ExpenseDraft) -> tuple[ExpenseRecord, bool]:
        conn = self._connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            # Stamped under the write lock so created_at follows commit order
            record = draft.to_record(created_at=self._clock())
            cursor = conn.execute(
                f"""
                INSERT INTO expenses ({', '.join(EXPENSE_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                self._record_to_params(record),
            )
            created = cursor.rowcount == 1
            row = conn.execute(f"{_SELECT_EXPENSES} WHERE id = ?", (draft.id,)).fetchone()
            conn.execute("COMMIT")
        except (sqlite3.Error, OverflowError) as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(f"Failed to save expense {draft.id}: {e}") from e
        finally:
            conn.close()

        if row is None:
            raise StorageError(f"Expense {draft.id} missing after insert")
        return self._row_to_record(row), created

    async def insert_or_get(self, draft: ExpenseDraft) -> tuple[ExpenseRecord, bool]:
        return await asyncio.to_thread(self._insert_or_get, draft)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _get_expense(self, expense_id: str) -> Optional[ExpenseRecord]:
        conn = self._connection()
        try:
            row = conn.execute(f"{_SELECT_EXPENSES} WHERE id = ?", (expense_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get expense: {e}") from e
        finally:
            conn.close()
        return self._row_to_record(row) if row is not None else None

    async def get_expense(self, expense_id: str) -> Optional[ExpenseRecord]:
        return await asyncio.to_thread(self._get_expense, expense_id)

    def _build_query(self, predicate: ExpensePredicate, order: SortOrder) -> tuple[str, list]:
        """Translate a predicate into SQL."""
        query = _SELECT_EXPENSES
        params = []
        conditions = []

        if predicate.category is not None:
            conditions.append("category = ?")
            params.append(predicate.category)
        if not isinstance(predicate.window, AllTime):
            conditions.append("date BETWEEN ? AND ?")
            params.append(predicate.window.first_day.isoformat())
            params.append(predicate.window.last_day.isoformat())

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY " + order_by_clause(order)
        return query, params

    def _list_expenses(self, predicate: ExpensePredicate, order: SortOrder) -> list[ExpenseRecord]:
        query, params = self._build_query(predicate, order)
        conn = self._connection()
        try:
            rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list expenses: {e}") from e
        finally:
            conn.close()
        return [self._row_to_record(row) for row in rows]

    async def list_expenses(
        self,
        predicate: ExpensePredicate,
        order: SortOrder,
    ) -> list[ExpenseRecord]:
        return await asyncio.to_thread(self._list_expenses, predicate, order)

    def _count_expenses(self) -> int:
        conn = self._connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM expenses").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count expenses: {e}") from e
        finally:
            conn.close()

    async def count_expenses(self) -> int:
        return await asyncio.to_thread(self._count_expenses)
