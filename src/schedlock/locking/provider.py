"""Lock provider: turns a ``LockConfiguration`` into a held lock, or nothing.

Manifesto:
    Every node fires the same trigger at the same moment.  The first one to
    win the store's atomic write runs the task; everyone else skips this
    cycle.  There is no waiting and no retry: the next trigger *is* the
    retry.

    - **Three outcomes:** fresh record inserted, expired record taken over,
      or rejected because the record is held
    - **Fail closed:** When the store cannot answer, the lock was not acquired
    - **Owner-only release:** Each acquisition writes a unique holder token;
      release and extension match it, so a late unlock never undoes a
      takeover by another node
    - **Minimum hold:** Unlocking before ``lock_at_least_until`` keeps the
      record held until exactly that instant

Architecture:
    ::

        StorageLockProvider.lock(config)
            │
            ├── 1. insert_if_absent(name, at_most_until)  ──► SimpleLock (INSERTED)
            │         (skipped for names known to exist in retaining stores)
            ├── 2. update_if_expired(name, at_most_until) ──► SimpleLock (UPDATED)
            └── 3. None  (held elsewhere)

        SimpleLock:  HELD ──unlock()──► RELEASED
                       │
                       └──extend()──► new SimpleLock (HELD), old one RELEASED

Examples:
    >>> provider = StorageLockProvider(InMemoryLockStore(), instance_id="node-1")
    >>> lock = provider.lock(LockDefaults().build("job-A"))
    >>> if lock is not None:
    ...     with lock:
    ...         run_job()

Guardrails:
    ❌ DON'T: Run the task when ``lock()`` returned ``None``
    ✅ DO: Skip this run; the next trigger tries again

    ❌ DON'T: Share a ``SimpleLock`` between concurrent callers
    ✅ DO: Acquire a handle per execution

Tags:
    distributed-locks, compare-and-swap, fail-closed, TTL, schedlock

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import socket
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol
from uuid import uuid4

from schedlock.core.errors import LockStateError, LockUnavailableError, StoreError
from schedlock.core.logging import get_logger
from schedlock.core.timestamps import Clock, ensure_utc, utc_now
from schedlock.locking.configuration import LockConfiguration, LockDefaults
from schedlock.locking.store import LockStore

logger = get_logger(__name__)


class AcquisitionPath(str, Enum):
    """How a ``SimpleLock`` came to be held."""

    INSERTED = "inserted"  # fresh record created
    UPDATED = "updated"    # expired record taken over
    EXTENDED = "extended"  # successor of an extended handle


class LockState(str, Enum):
    HELD = "held"
    RELEASED = "released"


class LockProvider(Protocol):
    """Anything that can try, once and without blocking, to take a named lock."""

    def lock(self, configuration: LockConfiguration) -> SimpleLock | None:
        """Return a held lock, or ``None`` when another node holds it."""
        ...


class SimpleLock:
    """
    Single-use handle for a currently held lock.

    Created only by a provider.  ``unlock()`` performs the one
    ``HELD → RELEASED`` transition; later calls are no-ops.  Usable as a
    context manager.

    Attributes:
        configuration: The configuration the lock was acquired with
        holder: Holder token written to the record's ``locked_by``
        acquired_via: Which path of the protocol produced this handle
    """

    def __init__(
        self,
        configuration: LockConfiguration,
        store: LockStore,
        holder: str,
        acquired_via: AcquisitionPath,
        clock: Clock = utc_now,
    ) -> None:
        self.configuration = configuration
        self.holder = holder
        self.acquired_via = acquired_via
        self._store = store
        self._clock = clock
        self._state = LockState.HELD
        self._guard = threading.Lock()

    @property
    def name(self) -> str:
        return self.configuration.name

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_held(self) -> bool:
        return self._state is LockState.HELD

    def unlock(self) -> None:
        """Release the lock, or keep it held until ``lock_at_least_until``.

        Store failures are logged, never raised: the record expires on its
        own at ``lock_until``.
        """
        with self._guard:
            if self._state is LockState.RELEASED:
                logger.debug("lock_already_released", lock_name=self.name, holder=self.holder)
                return
            self._state = LockState.RELEASED

        config = self.configuration
        now = ensure_utc(self._clock())
        try:
            if config.unlock_time(now) <= now:
                self._store.release(config.name, now, self.holder)
                logger.debug("lock_released", lock_name=config.name, holder=self.holder)
            else:
                # Never below lock_at_least_until, never past lock_at_most_until
                hold_until = min(config.lock_at_least_until, config.lock_at_most_until)
                kept = self._store.extend_lock(config.name, hold_until, now, self.holder)
                logger.debug(
                    "lock_held_until_minimum",
                    lock_name=config.name,
                    holder=self.holder,
                    hold_until=hold_until,
                    applied=kept,
                )
        except Exception as e:
            logger.warning(
                "lock_release_failed",
                lock_name=config.name,
                holder=self.holder,
                lock_until=config.lock_at_most_until,
                error=str(e),
            )

    def extend(
        self,
        lock_at_most_for: timedelta,
        lock_at_least_for: timedelta = timedelta(0),
    ) -> SimpleLock | None:
        """Extend a held lock to ``now + lock_at_most_for``.

        Returns:
            A new held handle on success (this one becomes RELEASED without
            touching the store), or ``None`` if the store refused because the
            lock already expired or was taken over.  On ``None`` this handle
            stays HELD.

        Raises:
            LockStateError: This handle was already released or extended.
            InvalidConfigurationError: Invalid durations.
            StoreError: The store could not be reached.
        """
        with self._guard:
            if self._state is LockState.RELEASED:
                raise LockStateError(
                    f"Lock {self.name!r} was already released and cannot be extended"
                ).with_context(lock_name=self.name, holder=self.holder)

            now = ensure_utc(self._clock())
            defaults = LockDefaults(lock_at_most_for=lock_at_most_for, lock_at_least_for=lock_at_least_for)
            extended_config = defaults.build(self.name, now=now)

            if not self._store.extend_lock(
                self.name, extended_config.lock_at_most_until, now, self.holder
            ):
                logger.info("lock_extension_refused", lock_name=self.name, holder=self.holder)
                return None

            self._state = LockState.RELEASED

        logger.debug(
            "lock_extended",
            lock_name=self.name,
            holder=self.holder,
            lock_until=extended_config.lock_at_most_until,
        )
        return SimpleLock(
            extended_config,
            self._store,
            self.holder,
            AcquisitionPath.EXTENDED,
            clock=self._clock,
        )

    def __enter__(self) -> SimpleLock:
        return self

    def __exit__(self, *args) -> None:
        self.unlock()

    def __repr__(self) -> str:
        return (
            f"SimpleLock(name={self.name!r}, holder={self.holder!r}, "
            f"state={self._state.value}, acquired_via={self.acquired_via.value})"
        )


class StorageLockProvider:
    """
    Lock provider written once against the ``LockStore`` contract.

    Example:
        >>> provider = StorageLockProvider(store, instance_id="scheduler-1")
        >>> lock = provider.lock(config)
        >>> if lock is None:
        ...     print("Another instance has the lock")
    """

    def __init__(
        self,
        store: LockStore,
        *,
        instance_id: str | None = None,
        clock: Clock = utc_now,
        fail_on_store_error: bool = False,
    ) -> None:
        """Initialize provider.

        Args:
            store: Backing store implementing ``LockStore``
            instance_id: Identity of this node, prefix of holder tokens.
                        Defaults to the host name.
            clock: Source of "now" for the whole acquisition
            fail_on_store_error: Raise ``LockUnavailableError`` instead of
                        returning ``None`` when the store fails
        """
        self.store = store
        self.instance_id = instance_id or socket.gethostname()
        self.fail_on_store_error = fail_on_store_error
        self._clock = clock
        # Names whose record is known to exist in the store
        self._known_records: set[str] = set()

    def lock(self, configuration: LockConfiguration) -> SimpleLock | None:
        """Try once to acquire the lock described by ``configuration``.

        Returns:
            ``SimpleLock`` if acquired, ``None`` if held elsewhere or the
            store failed (fail closed).

        Raises:
            LockUnavailableError: Store failed and ``fail_on_store_error`` is set.
        """
        name = configuration.name
        now = ensure_utc(self._clock())

        if configuration.lock_at_most_until <= now:
            logger.warning(
                "lock_at_most_until_in_past",
                lock_name=name,
                lock_at_most_until=configuration.lock_at_most_until,
            )
            return None

        holder = f"{self.instance_id}:{uuid4().hex}"
        try:
            path = self._acquire(configuration, now, holder)
        except Exception as e:
            error = e if isinstance(e, StoreError) else StoreError(
                f"Lock store failed: {e}", cause=e
            )
            error.with_context(lock_name=name, holder=holder, store=type(self.store).__name__)
            logger.warning("lock_store_failed", lock_name=name, error=str(e))
            if self.fail_on_store_error:
                raise LockUnavailableError(
                    f"Lock status unknown for {name!r}", cause=error
                ).with_context(lock_name=name, holder=holder) from error
            return None

        if path is None:
            logger.debug("lock_not_acquired", lock_name=name)
            return None

        logger.debug("lock_acquired", lock_name=name, holder=holder, path=path.value)
        return SimpleLock(configuration, self.store, holder, path, clock=self._clock)

    def _acquire(
        self, configuration: LockConfiguration, now: datetime, holder: str
    ) -> AcquisitionPath | None:
        name = configuration.name
        lock_until = configuration.lock_at_most_until

        if not self._insert_can_be_skipped(name):
            if self.store.insert_if_absent(name, lock_until, now, holder):
                self._known_records.add(name)
                return AcquisitionPath.INSERTED

        # Record exists (insert failed or known to exist)
        self._known_records.add(name)
        if self.store.update_if_expired(name, lock_until, now, holder):
            return AcquisitionPath.UPDATED
        return None

    def _insert_can_be_skipped(self, name: str) -> bool:
        return bool(getattr(self.store, "retains_records", False)) and name in self._known_records

    def clear_known_records(self) -> None:
        """Forget which records exist, e.g. after the lock table was truncated."""
        self._known_records.clear()


__all__ = [
    "AcquisitionPath",
    "LockState",
    "LockProvider",
    "SimpleLock",
    "StorageLockProvider",
]
