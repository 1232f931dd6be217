"""
Shared fixtures.

Async code is driven with asyncio.run; stores get a stepping clock so
created_at ordering is deterministic.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from expense_ledger.config import get_settings
from expense_ledger.services.storage import InMemoryExpenseStorage, SQLiteExpenseStorage


class StepClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self._next = start

    def __call__(self) -> datetime:
        now = self._next
        self._next += timedelta(seconds=1)
        return now


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def memory_storage(clock):
    storage = InMemoryExpenseStorage(clock=clock)
    asyncio.run(storage.open())
    yield storage
    asyncio.run(storage.close())


@pytest.fixture
def sqlite_storage(tmp_path, clock):
    storage = SQLiteExpenseStorage(
        database_path=str(tmp_path / "expenses.db"),
        clock=clock,
    )
    asyncio.run(storage.open())
    yield storage
    asyncio.run(storage.close())


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    """Every record store implementation, opened."""
    return request.getfixturevalue(f"{request.param}_storage")
