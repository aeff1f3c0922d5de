"""Locking task executor: acquire → run → release-or-hold as one unit.

Manifesto:
    Scheduler hooks should not hand-write ``try/finally`` around every job.
    The executor owns that shape: it skips silently when another node holds
    the lock, always unlocks on every exit path, and lets task failures
    reach the caller unchanged once the lock is dealt with.

Architecture:
    ::

        execute_with_lock(task, config)
            │
            ├── provider.lock(config) ── None ──► TaskResult(executed=False)
            │
            └── SimpleLock
                  │  lock_scope + LogContext(lock_name=…)
                  ├── task()            (exceptions propagate)
                  └── finally: unlock() (release now, or hold until
                                          lock_at_least_until)

Examples:
    >>> executor = LockingTaskExecutor(provider, LockDefaults(timedelta(minutes=10)))
    >>> result = executor.execute(send_report, "daily-report")
    >>> result.executed
    True

Tags:
    locking-executor, scheduled-tasks, try-finally, schedlock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Generic, TypeVar

from schedlock.core.logging import LogContext, get_logger
from schedlock.locking.assertion import lock_scope
from schedlock.locking.configuration import LockConfiguration, LockDefaults
from schedlock.locking.provider import LockProvider

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TaskResult(Generic[T]):
    """Outcome of a locked execution.

    ``executed`` is False when another node held the lock; ``result`` is
    then always None.
    """

    executed: bool
    result: T | None = None

    @classmethod
    def skipped(cls) -> TaskResult[T]:
        return cls(executed=False)


class LockingTaskExecutor:
    """Runs tasks only when the named lock could be acquired."""

    def __init__(self, provider: LockProvider, defaults: LockDefaults | None = None) -> None:
        self.provider = provider
        self.defaults = defaults or LockDefaults()

    def execute(
        self,
        task: Callable[[], T],
        name: str,
        lock_at_most_for: timedelta | None = None,
        lock_at_least_for: timedelta | None = None,
    ) -> TaskResult[T]:
        """Run ``task`` under a lock built from relative durations and defaults."""
        configuration = self.defaults.build(name, lock_at_most_for, lock_at_least_for)
        return self.execute_with_lock(task, configuration)

    def execute_with_lock(
        self, task: Callable[[], T], configuration: LockConfiguration
    ) -> TaskResult[T]:
        """Acquire, run ``task``, and unlock whatever happens.

        Returns:
            ``TaskResult(executed=True, result=...)`` if the task ran,
            ``TaskResult(executed=False)`` if the lock is held elsewhere.

        Raises:
            Whatever ``task`` raises, after the lock was released or held
            until ``lock_at_least_until``.
        """
        lock = self.provider.lock(configuration)
        if lock is None:
            logger.debug("task_skipped", lock_name=configuration.name)
            return TaskResult.skipped()

        with LogContext(lock_name=configuration.name), lock_scope(lock) as active:
            try:
                logger.debug("task_started", holder=lock.holder)
                result = task()
                logger.debug("task_finished")
                return TaskResult(executed=True, result=result)
            finally:
                active.lock.unlock()

    async def aexecute_with_lock(
        self,
        task: Callable[[], Awaitable[T]],
        configuration: LockConfiguration,
    ) -> TaskResult[T]:
        """Coroutine counterpart of :meth:`execute_with_lock`.

        Store calls stay synchronous; only ``task`` is awaited.
        """
        lock = self.provider.lock(configuration)
        if lock is None:
            logger.debug("task_skipped", lock_name=configuration.name)
            return TaskResult.skipped()

        async with LogContext(lock_name=configuration.name):
            with lock_scope(lock) as active:
                try:
                    logger.debug("task_started", holder=lock.holder)
                    result: Any = await task()
                    logger.debug("task_finished")
                    return TaskResult(executed=True, result=result)
                finally:
                    active.lock.unlock()


__all__ = ["TaskResult", "LockingTaskExecutor"]
