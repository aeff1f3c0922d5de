"""Distributed lock core.

Manifesto:
    A fleet of identical schedulers fires the same trigger at the same
    moment; at most one of them may run the task.  This package holds the
    lock model (``LockConfiguration``), the storage contract (``LockStore``),
    the acquisition protocol (``StorageLockProvider`` / ``SimpleLock``) and
    the ``LockingTaskExecutor`` that wraps a task in acquire → run → unlock.

Architecture::

    configuration.py   LockConfiguration, LockDefaults
    store.py           LockStore protocol, LockRecord
    provider.py        StorageLockProvider, SimpleLock, AcquisitionPath
    executor.py        LockingTaskExecutor, TaskResult
    assertion.py       assert_locked, extend_active_lock

Tags:
    schedlock, distributed-locks, scheduling, package-overview
"""

from __future__ import annotations

from .assertion import assert_locked, current_lock, extend_active_lock
from .configuration import LockConfiguration, LockDefaults
from .executor import LockingTaskExecutor, TaskResult
from .provider import (
    AcquisitionPath,
    LockProvider,
    LockState,
    SimpleLock,
    StorageLockProvider,
)
from .store import LockRecord, LockStore

__all__ = [
    "LockConfiguration",
    "LockDefaults",
    "LockStore",
    "LockRecord",
    "LockProvider",
    "StorageLockProvider",
    "SimpleLock",
    "AcquisitionPath",
    "LockState",
    "LockingTaskExecutor",
    "TaskResult",
    "assert_locked",
    "current_lock",
    "extend_active_lock",
]
