"""
schedlock - At-most-once execution of scheduled tasks across a fleet.

Every node of a fleet fires the same cron trigger; schedlock makes sure
only one of them runs the task, using nothing but atomic conditional writes
against a shared store.

Example:
    >>> from schedlock import LockingTaskExecutor, StorageLockProvider
    >>> from schedlock.stores import SqlLockStore
    >>> store = SqlLockStore(conn)
    >>> executor = LockingTaskExecutor(StorageLockProvider(store))
    >>> executor.execute(send_report, "daily-report", lock_at_most_for=timedelta(minutes=10))
"""

__version__ = "0.1.0"

from schedlock.core.logging import configure_logging, get_logger
from schedlock.core.settings import LockSettings
from schedlock.locking import (
    AcquisitionPath,
    LockConfiguration,
    LockDefaults,
    LockingTaskExecutor,
    LockProvider,
    LockRecord,
    LockState,
    LockStore,
    SimpleLock,
    StorageLockProvider,
    TaskResult,
    assert_locked,
    current_lock,
    extend_active_lock,
)

__all__ = [
    "__version__",
    # Locking
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
    # Ambient
    "LockSettings",
    "configure_logging",
    "get_logger",
]
