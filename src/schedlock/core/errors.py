"""
Structured error types for schedlock.

Every failure the lock core can report carries a category, a retry flag,
the lock it concerns and an optional chained cause, so that a scheduler
host can log it, route it and decide whether the next trigger should simply
try again.

Manifesto:
    - **Typed hierarchy:** Configuration, store and handle-state failures are
      different problems and get different types
    - **Contention is not an error:** A lock held elsewhere is an ordinary
      ``None`` from ``lock()``, never an exception
    - **Fail closed:** Store failures surface as errors, never as an
      assumed success
    - **Error chaining:** Driver exceptions are kept as ``__cause__``

Architecture:
    ::

        SchedLockError  (category, retryable, context, __cause__)
        ├── ConfigError                 CONFIG
        │   └── InvalidConfigurationError
        ├── StoreError                  STORAGE, retryable
        ├── LockUnavailableError        ORCHESTRATION, retryable
        └── LockStateError              STATE
            ├── LockNotHeldError
            └── LockExtensionError

Examples:
    >>> error = StoreError("connection reset", lock_name="job-A", operation="release")
    >>> error.retryable
    True
    >>> error.to_dict()["lock_name"]
    'job-A'

Guardrails:
    ❌ DON'T: Raise for "another node holds the lock"
    ✅ DO: Return ``None`` from ``LockProvider.lock()``

    ❌ DON'T: Drop a driver exception when wrapping it
    ✅ DO: Pass it as ``cause=`` so tracebacks keep the root cause

Tags:
    error-handling, exception-hierarchy, retry-logic, schedlock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar


class ErrorCategory(str, Enum):
    """Where a failure comes from; drives routing and retry decisions."""

    CONFIG = "CONFIG"                # Malformed lock configuration or settings
    STORAGE = "STORAGE"              # Backing store I/O, timeout, connectivity
    ORCHESTRATION = "ORCHESTRATION"  # Lock status unknown, run must be skipped
    STATE = "STATE"                  # Misuse of a lock handle
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """The lock, holder and store primitive an error is about.

    Keys that are not fields land in ``extra``.
    """

    lock_name: str | None = None
    holder: str | None = None
    store: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def update(self, **kwargs: Any) -> None:
        names = {f.name for f in fields(self)} - {"extra"}
        for key, value in kwargs.items():
            if key in names:
                setattr(self, key, value)
            else:
                self.extra[key] = value

    def to_dict(self) -> dict[str, Any]:
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


class SchedLockError(Exception):
    """
    Base exception for all schedlock errors.

    Subclasses fix ``category`` and the default ``retryable``; callers pass
    the message, an optional ``cause`` and context as keyword arguments.

    Examples:
        >>> err = SchedLockError("boom")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise ConnectionError("DNS failure")
        ... except ConnectionError as e:
        ...     wrapped = StoreError("store unreachable", cause=e)
        >>> wrapped.cause
        ConnectionError('DNS failure')
    """

    category: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable
        self.context = ErrorContext()
        self.context.update(**context)
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def with_context(self, **kwargs: Any) -> SchedLockError:
        """Attach more context and return the same error.

        Usage:
            raise LockStateError("released").with_context(lock_name="job-A")
        """
        self.context.update(**kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat, log-ready view: ECS ``error.*`` keys plus the context keys."""
        result: dict[str, Any] = {
            "error.type": type(self).__name__,
            "error.message": self.message,
            "error.category": self.category.value,
            "error.retryable": self.retryable,
        }
        if self.__cause__ is not None:
            result["error.cause"] = repr(self.__cause__)
        result.update(self.context.to_dict())
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigError(SchedLockError):
    """Bad configuration; retrying cannot help."""

    category = ErrorCategory.CONFIG


class InvalidConfigurationError(ConfigError):
    """A lock configuration value or duration is malformed."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid lock configuration for {key}: {value!r}", key=key)


# =============================================================================
# STORE
# =============================================================================


class StoreError(SchedLockError):
    """Backing store I/O error, timeout or connectivity loss."""

    category = ErrorCategory.STORAGE
    retryable = True


class LockUnavailableError(SchedLockError):
    """
    Lock status could not be determined.

    Raised only by providers configured with ``fail_on_store_error=True``.
    The protected work must not run.
    """

    category = ErrorCategory.ORCHESTRATION
    retryable = True


# =============================================================================
# LOCK HANDLES
# =============================================================================


class LockStateError(SchedLockError):
    """Operation is not valid for the current state of a lock handle."""

    category = ErrorCategory.STATE


class LockNotHeldError(LockStateError):
    """No lock is active in the current context."""

    def __init__(self, message: str = "The code is not running under a lock", **context: Any):
        super().__init__(message, **context)


class LockExtensionError(LockStateError):
    """The store refused to extend a held lock."""


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, SchedLockError) and error.retryable


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SchedLockError",
    "ConfigError",
    "InvalidConfigurationError",
    "StoreError",
    "LockUnavailableError",
    "LockStateError",
    "LockNotHeldError",
    "LockExtensionError",
    "is_retryable",
]
