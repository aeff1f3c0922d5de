"""Lock configuration: identity and timing of one lock request.

Manifesto:
    A lock request is a value, not a service.  ``LockConfiguration`` holds
    the lock name and two absolute instants; nothing about it touches the
    store, so it can be built repeatedly from any thread.

    - **lock_at_most_until:** Safety net.  Past this instant the holder is
      assumed dead and the record may be taken over.
    - **lock_at_least_until:** Minimum hold.  A task finishing early must not
      let another node run the same trigger a second time.
    - **unlock_time():** Computed on demand because "now" moves between
      building the configuration and releasing the lock.

Architecture:
    ::

        upstream (task discovery)
            │  name, lock_at_most_for, lock_at_least_for
            ▼
        LockDefaults.build()      ← validates durations, applies defaults
            │
            ▼
        LockConfiguration(name, now + at_most, now + at_least)
            │
            ▼
        LockProvider.lock()

Examples:
    >>> defaults = LockDefaults(lock_at_most_for=timedelta(minutes=30))
    >>> config = defaults.build("job-A", lock_at_least_for=timedelta(minutes=5))
    >>> config.lock_at_least_until <= config.unlock_time()
    True

Tags:
    lock-configuration, value-object, immutable, schedlock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from schedlock.core.errors import InvalidConfigurationError
from schedlock.core.timestamps import ensure_utc, utc_now

DEFAULT_LOCK_AT_MOST_FOR = timedelta(minutes=30)
DEFAULT_LOCK_AT_LEAST_FOR = timedelta(0)
# Width of the name column in SQL lock tables
MAX_LOCK_NAME_LENGTH = 64


def _require_instant(key: str, value: object) -> datetime:
    if value is None:
        raise InvalidConfigurationError(key, value, f"{key} is required")
    if not isinstance(value, datetime):
        raise InvalidConfigurationError(key, value, f"{key} must be a datetime, got {type(value).__name__}")
    return ensure_utc(value)


@dataclass(frozen=True, slots=True)
class LockConfiguration:
    """
    Immutable description of one lock request.

    Attributes:
        name: Lock identifier; every node using the same name contends for
            the same record.
        lock_at_most_until: Instant after which the lock is released even if
            the holder never unlocks (it most likely died).
        lock_at_least_until: Instant until which the lock stays held even if
            the task finishes earlier.  Defaults to construction time.

    ``lock_at_least_until <= lock_at_most_until`` is expected but not
    enforced here; ``LockDefaults.build`` enforces it.

    Raises:
        InvalidConfigurationError: Missing, empty or over-long name, missing
            ``lock_at_most_until``, or a non-datetime instant.
    """

    name: str
    lock_at_most_until: datetime
    lock_at_least_until: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if self.name is None or not isinstance(self.name, str):
            raise InvalidConfigurationError("name", self.name, "Lock name is required")
        if not self.name.strip():
            raise InvalidConfigurationError("name", self.name, "Lock name must not be empty")
        if len(self.name) > MAX_LOCK_NAME_LENGTH:
            raise InvalidConfigurationError(
                "name", self.name, f"Lock name is longer than {MAX_LOCK_NAME_LENGTH} characters"
            )

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(
            self, "lock_at_most_until", _require_instant("lock_at_most_until", self.lock_at_most_until)
        )
        at_least = utc_now() if self.lock_at_least_until is None else self.lock_at_least_until
        object.__setattr__(
            self, "lock_at_least_until", _require_instant("lock_at_least_until", at_least)
        )

    def unlock_time(self, now: datetime | None = None) -> datetime:
        """Return either now or ``lock_at_least_until``, whichever is later."""
        now = ensure_utc(now) if now is not None else utc_now()
        return self.lock_at_least_until if self.lock_at_least_until > now else now

    def __str__(self) -> str:
        return (
            f"LockConfiguration(name={self.name!r}, "
            f"lock_at_most_until={self.lock_at_most_until.isoformat()}, "
            f"lock_at_least_until={self.lock_at_least_until.isoformat()})"
        )


@dataclass(frozen=True, slots=True)
class LockDefaults:
    """
    Process-wide default durations, passed explicitly to executors.

    Attributes:
        lock_at_most_for: Applied when a task does not name its own upper bound.
        lock_at_least_for: Applied when a task does not name a minimum hold.
    """

    lock_at_most_for: timedelta = DEFAULT_LOCK_AT_MOST_FOR
    lock_at_least_for: timedelta = DEFAULT_LOCK_AT_LEAST_FOR

    def __post_init__(self) -> None:
        _check_durations(self.lock_at_most_for, self.lock_at_least_for)

    def build(
        self,
        name: str,
        lock_at_most_for: timedelta | None = None,
        lock_at_least_for: timedelta | None = None,
        *,
        now: datetime | None = None,
    ) -> LockConfiguration:
        """Build a ``LockConfiguration`` from relative durations.

        Args:
            name: Lock name
            lock_at_most_for: Upper bound; ``None`` uses the default
            lock_at_least_for: Minimum hold; ``None`` uses the default
            now: Reference instant (default: current UTC time)

        Raises:
            InvalidConfigurationError: Negative durations, a zero upper bound,
                or a minimum hold longer than the upper bound.
        """
        at_most = self.lock_at_most_for if lock_at_most_for is None else lock_at_most_for
        at_least = self.lock_at_least_for if lock_at_least_for is None else lock_at_least_for
        _check_durations(at_most, at_least)

        now = ensure_utc(now) if now is not None else utc_now()
        return LockConfiguration(
            name=name,
            lock_at_most_until=now + at_most,
            lock_at_least_until=now + at_least,
        )


def _check_durations(lock_at_most_for: timedelta, lock_at_least_for: timedelta) -> None:
    if not isinstance(lock_at_most_for, timedelta):
        raise InvalidConfigurationError("lock_at_most_for", lock_at_most_for, "lock_at_most_for must be a timedelta")
    if not isinstance(lock_at_least_for, timedelta):
        raise InvalidConfigurationError("lock_at_least_for", lock_at_least_for, "lock_at_least_for must be a timedelta")
    if lock_at_most_for <= timedelta(0):
        raise InvalidConfigurationError(
            "lock_at_most_for", lock_at_most_for, "lock_at_most_for must be positive"
        )
    if lock_at_least_for < timedelta(0):
        raise InvalidConfigurationError(
            "lock_at_least_for", lock_at_least_for, "lock_at_least_for must not be negative"
        )
    if lock_at_least_for > lock_at_most_for:
        raise InvalidConfigurationError(
            "lock_at_least_for",
            lock_at_least_for,
            f"lock_at_least_for ({lock_at_least_for}) is longer than lock_at_most_for ({lock_at_most_for})",
        )
