"""SQL lock store over a DB-API connection.

Manifesto:
    A relational table with a unique key on ``name`` plus conditional
    ``UPDATE … WHERE`` statements is all the lock protocol needs.  Each
    primitive is a single statement committed on its own, so the database's
    row-level atomicity decides every race: INSERT-or-ignore gives O(1)
    conflict detection and the ``lock_until`` filter decides takeovers.

Architecture:
    ::

        shedlock
        ┌────────────┬──────────────┬──────────────┬──────────────┐
        │ name (PK)  │ lock_until   │ locked_at    │ locked_by    │
        └────────────┴──────────────┴──────────────┴──────────────┘

        insert_if_absent   INSERT OR IGNORE / ON CONFLICT DO NOTHING
        update_if_expired  UPDATE … WHERE name = ? AND lock_until <= now
        extend_lock        UPDATE … WHERE name = ? AND locked_by = ?
                                        AND lock_until >= now
        release            UPDATE lock_until = now | DELETE
                                        WHERE name = ? AND locked_by = ?

    Instants are stored as fixed-width UTC strings so comparisons in SQL
    are plain string comparisons on every dialect.

Examples:
    >>> conn = sqlite3.connect("locks.db")
    >>> store = SqlLockStore(conn)
    >>> store.create_table()
    >>> provider = StorageLockProvider(store, instance_id="scheduler-1")

Tags:
    sql, lock-store, dialect, TTL, schedlock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import contextlib
from datetime import datetime
from typing import Any

from schedlock.core.dialect import Dialect, SQLiteDialect
from schedlock.core.errors import InvalidConfigurationError, StoreError
from schedlock.core.logging import get_logger
from schedlock.core.protocols import Connection, Cursor
from schedlock.core.timestamps import format_instant, parse_instant
from schedlock.locking.configuration import MAX_LOCK_NAME_LENGTH
from schedlock.locking.store import LockRecord

logger = get_logger(__name__)

_COLUMNS = ["name", "lock_until", "locked_at", "locked_by"]


class SqlLockStore:
    """``LockStore`` backed by one table in a relational database."""

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect = SQLiteDialect(),
        table_name: str = "shedlock",
        delete_on_release: bool = False,
    ) -> None:
        """Initialize SQL store.

        Args:
            conn: Database connection (``sqlite3.Connection`` or compatible)
            dialect: SQL dialect for portable statements
            table_name: Lock table name
            delete_on_release: DELETE released records instead of expiring them
        """
        if not table_name.replace("_", "").isalnum():
            raise InvalidConfigurationError("table_name", table_name)
        self.conn = conn
        self.dialect = dialect
        self.table_name = table_name
        self.delete_on_release = delete_on_release

    @property
    def retains_records(self) -> bool:
        return not self.delete_on_release

    def _ph(self, index: int) -> str:
        """Generate dialect-specific placeholder at 1-based position."""
        return self.dialect.placeholder(index - 1)

    def _execute(self, operation: str, sql: str, params: tuple = ()) -> Cursor:
        try:
            cursor = self.conn.execute(sql, params)
            self.conn.commit()
            return cursor
        except Exception as e:
            with contextlib.suppress(Exception):
                self.conn.rollback()
            raise StoreError(
                f"Lock store {operation} failed: {e}",
                cause=e,
                store=type(self).__name__,
                operation=operation,
            ) from e

    # === Schema ===

    def create_table(self) -> None:
        """Create the lock table if it does not exist."""
        instant = self.dialect.instant_type()
        self._execute(
            "create_table",
            f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                name VARCHAR({MAX_LOCK_NAME_LENGTH}) NOT NULL PRIMARY KEY,
                lock_until {instant} NOT NULL,
                locked_at {instant} NOT NULL,
                locked_by VARCHAR(255) NOT NULL
            )
            """,
        )

    # === Atomic primitives ===

    def insert_if_absent(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        sql = self.dialect.insert_or_ignore(self.table_name, _COLUMNS)
        cursor = self._execute(
            "insert_if_absent",
            sql,
            (name, format_instant(lock_until), format_instant(now), locked_by),
        )
        return cursor.rowcount > 0

    def update_if_expired(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        cursor = self._execute(
            "update_if_expired",
            f"""
            UPDATE {self.table_name}
            SET lock_until = {self._ph(1)}, locked_at = {self._ph(2)}, locked_by = {self._ph(3)}
            WHERE name = {self._ph(4)} AND lock_until <= {self._ph(5)}
            """,
            (
                format_instant(lock_until),
                format_instant(now),
                locked_by,
                name,
                format_instant(now),
            ),
        )
        return cursor.rowcount > 0

    def extend_lock(
        self, name: str, lock_until: datetime, now: datetime, locked_by: str
    ) -> bool:
        cursor = self._execute(
            "extend_lock",
            f"""
            UPDATE {self.table_name}
            SET lock_until = {self._ph(1)}
            WHERE name = {self._ph(2)} AND locked_by = {self._ph(3)} AND lock_until >= {self._ph(4)}
            """,
            (format_instant(lock_until), name, locked_by, format_instant(now)),
        )
        return cursor.rowcount > 0

    def release(self, name: str, now: datetime, locked_by: str) -> None:
        if self.delete_on_release:
            cursor = self._execute(
                "release",
                f"""
                DELETE FROM {self.table_name}
                WHERE name = {self._ph(1)} AND locked_by = {self._ph(2)}
                """,
                (name, locked_by),
            )
        else:
            cursor = self._execute(
                "release",
                f"""
                UPDATE {self.table_name}
                SET lock_until = {self._ph(1)}
                WHERE name = {self._ph(2)} AND locked_by = {self._ph(3)}
                """,
                (format_instant(now), name, locked_by),
            )
        if cursor.rowcount == 0:
            logger.info("lock_release_no_record", lock_name=name, holder=locked_by)

    # === Diagnostics ===

    def get_record(self, name: str) -> LockRecord | None:
        """Read one record (never used on the acquisition path)."""
        cursor = self._execute(
            "get_record",
            f"""
            SELECT name, lock_until, locked_at, locked_by
            FROM {self.table_name}
            WHERE name = {self._ph(1)}
            """,
            (name,),
        )
        row = cursor.fetchone()
        return _row_to_record(row) if row else None

    def list_records(self) -> list[LockRecord]:
        """All records, oldest acquisition first."""
        cursor = self._execute(
            "list_records",
            f"""
            SELECT name, lock_until, locked_at, locked_by
            FROM {self.table_name}
            ORDER BY locked_at
            """,
        )
        return [_row_to_record(row) for row in cursor.fetchall()]


def _row_to_record(row: Any) -> LockRecord:
    return LockRecord(
        name=row[0],
        lock_until=parse_instant(row[1]),
        locked_at=parse_instant(row[2]),
        locked_by=row[3],
    )
