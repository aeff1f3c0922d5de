"""DB-API shapes ``SqlLockStore`` relies on.

``sqlite3.Connection`` satisfies ``Connection`` directly; psycopg, PyMySQL
and similar drivers do too, or with a thin ``execute`` shim over
``cursor().execute``.  The lock protocol reads exactly one thing from a
write: ``rowcount``, which is the compare-and-swap result.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Result of ``Connection.execute``."""

    @property
    def rowcount(self) -> int:
        """Rows affected by the last INSERT/UPDATE/DELETE (0 = condition not met)."""
        ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def fetchall(self) -> list[Sequence[Any]]: ...


@runtime_checkable
class Connection(Protocol):
    """Synchronous connection; every lock primitive is one execute + commit."""

    def execute(self, sql: str, params: tuple = ()) -> Cursor: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


__all__ = ["Connection", "Cursor"]
