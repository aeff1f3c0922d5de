"""
Shared pytest fixtures for schedlock tests.

This module provides:
- A controllable clock so expiry can be tested without sleeping
- In-memory and SQLite-backed lock stores
- Providers for two independent nodes sharing one store

Usage:
    def test_something(memory_store, clock):
        provider = StorageLockProvider(memory_store, instance_id="node-1", clock=clock)
"""

import sqlite3
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Ensure schedlock package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from schedlock.locking import StorageLockProvider
from schedlock.stores import InMemoryLockStore, SqlLockStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2025-01-15 12:00:00 UTC."""
    return FakeClock(datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC))


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest.fixture
def db_conn():
    """In-memory SQLite connection."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    yield conn
    conn.close()


@pytest.fixture
def sql_store(db_conn) -> SqlLockStore:
    store = SqlLockStore(db_conn)
    store.create_table()
    return store


# =============================================================================
# Providers
# =============================================================================


@pytest.fixture
def node_a(memory_store, clock) -> StorageLockProvider:
    return StorageLockProvider(memory_store, instance_id="node-a", clock=clock)


@pytest.fixture
def node_b(memory_store, clock) -> StorageLockProvider:
    return StorageLockProvider(memory_store, instance_id="node-b", clock=clock)
