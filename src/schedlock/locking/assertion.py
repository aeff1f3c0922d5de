"""Context-local view of the locks held by the running task.

Code deep inside a scheduled task sometimes needs to know it runs under a
lock (to refuse being called from elsewhere) or to push the lock's expiry
further out during a long batch.  The executor registers each held lock
here for the duration of the task; contextvars keep threads and asyncio
tasks isolated from each other.

Examples:
    >>> def purge_old_rows():
    ...     assert_locked()
    ...     for batch in batches():
    ...         process(batch)
    ...         extend_active_lock(timedelta(minutes=5))

Tags:
    lock-assert, lock-extender, contextvars, schedlock
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import timedelta

from schedlock.core.errors import LockExtensionError, LockNotHeldError
from schedlock.locking.provider import SimpleLock


class ActiveLock:
    """Mutable slot for the handle currently guarding a task.

    Extension swaps in the successor handle, so the executor always unlocks
    the one that is actually held.
    """

    __slots__ = ("lock",)

    def __init__(self, lock: SimpleLock) -> None:
        self.lock = lock


_active_locks: ContextVar[tuple[ActiveLock, ...]] = ContextVar(
    "schedlock_active_locks", default=()
)


@contextmanager
def lock_scope(lock: SimpleLock) -> Iterator[ActiveLock]:
    """Register ``lock`` as active for the enclosed block."""
    slot = ActiveLock(lock)
    token = _active_locks.set(_active_locks.get() + (slot,))
    try:
        yield slot
    finally:
        _active_locks.reset(token)


def current_lock() -> SimpleLock | None:
    """Innermost lock held by the current context, if any."""
    stack = _active_locks.get()
    return stack[-1].lock if stack else None


def assert_locked() -> None:
    """Raise ``LockNotHeldError`` unless the caller runs under a lock."""
    lock = current_lock()
    if lock is None or not lock.is_held:
        raise LockNotHeldError()


def extend_active_lock(
    lock_at_most_for: timedelta,
    lock_at_least_for: timedelta = timedelta(0),
) -> SimpleLock:
    """Extend the innermost active lock to ``now + lock_at_most_for``.

    Raises:
        LockNotHeldError: No lock is active in this context.
        LockExtensionError: The store refused (lock expired or taken over).
    """
    stack = _active_locks.get()
    if not stack:
        raise LockNotHeldError("No active lock to extend")

    slot = stack[-1]
    extended = slot.lock.extend(lock_at_most_for, lock_at_least_for)
    if extended is None:
        raise LockExtensionError(
            f"Lock {slot.lock.name!r} can not be extended"
        ).with_context(lock_name=slot.lock.name, holder=slot.lock.holder)

    slot.lock = extended
    return extended


__all__ = [
    "ActiveLock",
    "lock_scope",
    "current_lock",
    "assert_locked",
    "extend_active_lock",
]
