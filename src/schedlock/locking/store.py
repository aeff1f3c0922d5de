"""Storage contract consumed by the lock provider.

Manifesto:
    The backing store is the *only* synchronisation primitive between
    nodes.  Every primitive below must be one indivisible operation against
    the shared store (unique-key insert, conditional UPDATE, conditional put)
    so that when many nodes race for the same transition exactly one of
    them observes success.  No read-then-write path is allowed.

Architecture:
    ::

        LockStore (Protocol)
        ├── insert_if_absent(name, lock_until, now, locked_by)  → bool
        ├── update_if_expired(name, lock_until, now, locked_by) → bool
        ├── extend_lock(name, lock_until, now, locked_by)       → bool
        ├── release(name, now, locked_by)                       → None
        └── retains_records: bool

        Implementations:
        ├── InMemoryLockStore   (stores.memory)
        └── SqlLockStore        (stores.sql)

Guardrails:
    ❌ DON'T: SELECT the record and then decide whether to UPDATE it
    ✅ DO: Put the condition in the same statement as the write

    ❌ DON'T: Release by name alone
    ✅ DO: Match ``locked_by`` so a takeover after expiry is never undone

Tags:
    protocol, lock-store, compare-and-swap, schedlock, contracts
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class LockRecord:
    """Persisted state of one named lock."""

    name: str
    lock_until: datetime
    locked_at: datetime
    locked_by: str | None = None

    def is_held(self, now: datetime) -> bool:
        """True while ``lock_until`` is still in the future."""
        return self.lock_until > now

    def to_dict(self) -> dict[str, str | None]:
        return {
            "name": self.name,
            "lock_until": self.lock_until.isoformat(),
            "locked_at": self.locked_at.isoformat(),
            "locked_by": self.locked_by,
        }


@runtime_checkable
class LockStore(Protocol):
    """
    Atomic storage primitives a backend must provide.

    All instants are aware UTC datetimes.  ``now`` is supplied by the
    provider so one clock governs a whole acquisition.  Implementations
    raise ``StoreError`` for I/O failures and return ``False`` only when the
    condition did not hold.
    """

    retains_records: bool
    """True when released records stay in the store (expired, not deleted)."""

    def insert_if_absent(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        """Create the record only if no record with ``name`` exists."""
        ...

    def update_if_expired(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        """Take over an existing record whose ``lock_until <= now``."""
        ...

    def extend_lock(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        """Move ``lock_until`` of a record still held by ``locked_by``.

        Applies only while ``now <= lock_until`` of the stored record.
        """
        ...

    def release(self, name: str, now: datetime, locked_by: str) -> None:
        """Make the record immediately acquirable, if ``locked_by`` still owns it.

        Either deletes the record or sets ``lock_until = now``.
        """
        ...


__all__ = ["LockRecord", "LockStore"]
