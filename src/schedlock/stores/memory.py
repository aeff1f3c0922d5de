"""In-process lock store.

Implements the ``LockStore`` contract over a dict guarded by a
``threading.Lock``.  Contention between threads of one process behaves
exactly like contention between nodes sharing a database, which makes this
store the reference implementation for tests and single-process
deployments.  Records are never deleted; release expires them.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from schedlock.locking.store import LockRecord


class InMemoryLockStore:
    """Thread-safe ``LockStore`` kept in process memory."""

    retains_records = True

    def __init__(self) -> None:
        self._records: dict[str, LockRecord] = {}
        self._mutex = threading.Lock()

    def insert_if_absent(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        with self._mutex:
            if name in self._records:
                return False
            self._records[name] = LockRecord(name, lock_until, now, locked_by)
            return True

    def update_if_expired(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        with self._mutex:
            record = self._records.get(name)
            if record is None or record.lock_until > now:
                return False
            self._records[name] = LockRecord(name, lock_until, now, locked_by)
            return True

    def extend_lock(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        with self._mutex:
            record = self._records.get(name)
            if record is None or record.locked_by != locked_by or record.lock_until < now:
                return False
            self._records[name] = replace(record, lock_until=lock_until)
            return True

    def release(self, name: str, now: datetime, locked_by: str) -> None:
        with self._mutex:
            record = self._records.get(name)
            if record is not None and record.locked_by == locked_by:
                self._records[name] = replace(record, lock_until=now)

    # -- Diagnostics -------------------------------------------------------

    def get_record(self, name: str) -> LockRecord | None:
        with self._mutex:
            return self._records.get(name)

    def list_records(self) -> list[LockRecord]:
        with self._mutex:
            return sorted(self._records.values(), key=lambda r: r.locked_at)

    def clear(self) -> None:
        with self._mutex:
            self._records.clear()
