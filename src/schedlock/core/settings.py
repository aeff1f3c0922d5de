"""Process-wide settings for schedlock.

Every node in a fleet must agree on default lock durations, otherwise one
node could consider a lock expired while another still relies on it.
``LockSettings`` reads those defaults from ``SCHEDLOCK_*`` environment
variables or a ``.env`` file so they are deployed alongside the scheduler.

Manifesto:
    - **Pydantic validation:** Type-checked at startup, not at the first trigger
    - **Environment-driven:** Reads from env vars and .env files
    - **Explicit hand-off:** Defaults leave this module as a ``LockDefaults``
      value passed to executors, never as mutable global state

Examples:
    >>> from schedlock.core.settings import LockSettings
    >>> settings = LockSettings(default_lock_at_most_for="PT10M")
    >>> settings.lock_defaults().lock_at_most_for
    datetime.timedelta(seconds=600)

Tags:
    settings, configuration, pydantic, environment, schedlock

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import socket
from datetime import timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from schedlock.core.dialect import get_dialect
from schedlock.core.logging import configure_logging
from schedlock.core.protocols import Connection
from schedlock.locking.configuration import (
    DEFAULT_LOCK_AT_LEAST_FOR,
    DEFAULT_LOCK_AT_MOST_FOR,
    LockDefaults,
)
from schedlock.locking.provider import StorageLockProvider
from schedlock.locking.store import LockStore
from schedlock.stores.sql import SqlLockStore


class LockSettings(BaseSettings):
    """Settings shared by every lock provider in a process.

    Fields
    ──────
    default_lock_at_most_for  : Upper bound applied when a task names none
    default_lock_at_least_for : Minimum hold applied when a task names none
    instance_id               : Node identity written into ``locked_by``
    table_name                : Lock table used by ``SqlLockStore``
    dialect                   : SQL dialect of the lock table
    log_level                 : Structlog log level
    json_logs                 : JSON output (None = auto-detect from TTY)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEDLOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Lock timing ──────────────────────────────────────────────
    default_lock_at_most_for: timedelta = Field(default=DEFAULT_LOCK_AT_MOST_FOR)
    default_lock_at_least_for: timedelta = Field(default=DEFAULT_LOCK_AT_LEAST_FOR)

    # ── Identity / storage ───────────────────────────────────────
    instance_id: str = Field(default_factory=socket.gethostname)
    table_name: str = "shedlock"
    dialect: str = "sqlite"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("table_name")
    @classmethod
    def _check_table_name(cls, v: str) -> str:
        if not v.replace("_", "").isalnum():
            raise ValueError(f"table_name must be alphanumeric/underscore, got {v!r}")
        return v

    def lock_defaults(self) -> LockDefaults:
        """Build the ``LockDefaults`` value handed to executors."""
        return LockDefaults(
            lock_at_most_for=self.default_lock_at_most_for,
            lock_at_least_for=self.default_lock_at_least_for,
        )

    @field_validator("dialect")
    @classmethod
    def _check_dialect(cls, v: str) -> str:
        get_dialect(v)
        return v.lower()

    def configure_logging(self) -> None:
        """Configure structlog from ``log_level``, ``json_logs`` and ``instance_id``."""
        configure_logging(
            level=self.log_level,
            json_format=self.json_logs,
            instance_id=self.instance_id,
        )

    def sql_lock_store(self, conn: Connection, *, delete_on_release: bool = False) -> SqlLockStore:
        """``SqlLockStore`` on ``conn`` using the configured table and dialect."""
        return SqlLockStore(
            conn,
            dialect=get_dialect(self.dialect),
            table_name=self.table_name,
            delete_on_release=delete_on_release,
        )

    def lock_provider(self, store: LockStore, *, fail_on_store_error: bool = False) -> StorageLockProvider:
        """Provider over ``store`` whose holder tokens start with ``instance_id``."""
        return StorageLockProvider(
            store,
            instance_id=self.instance_id,
            fail_on_store_error=fail_on_store_error,
        )
