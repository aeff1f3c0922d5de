"""
SQL dialect abstraction for the lock table.

Manifesto:
    The lock protocol is written once; only placeholders, the
    insert-if-absent statement and column types differ per database.
    Each dialect returns SQL *fragments* that ``SqlLockStore`` interpolates
    into its statements, keeping dialect syntax out of the lock logic.

Architecture:
    ::

        Dialect (Protocol)
        ├── SQLiteDialect      ?   INSERT OR IGNORE
        ├── PostgreSQLDialect  %s  INSERT … ON CONFLICT DO NOTHING
        └── MySQLDialect       %s  INSERT IGNORE

Examples:
    >>> get_dialect("postgresql").insert_or_ignore("shedlock", ["name", "lock_until"])
    'INSERT INTO shedlock (name, lock_until) VALUES (%s, %s) ON CONFLICT DO NOTHING'

Tags:
    dialect, sql, portability, database, schedlock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable



@runtime_checkable
class Dialect(Protocol):
    """What ``SqlLockStore`` needs to know about a database."""

    @property
    def name(self) -> str: ...

    def placeholder(self, index: int) -> str:
        """Positional parameter marker (0-based index)."""
        ...

    def placeholders(self, count: int) -> str: ...

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        """INSERT that affects zero rows when the key already exists.

        ``rowcount`` of the statement tells the caller whether it created
        the record; this is the insert leg of the lock protocol.
        """
        ...

    def instant_type(self) -> str:
        """Column type holding a fixed-width UTC instant string."""
        ...


class _LockTableDialect:
    """Shared rendering; subclasses only set the per-database constants."""

    name = ""
    marker = "?"
    # {table}, {columns}, {values}
    insert_template = "INSERT INTO {table} ({columns}) VALUES ({values})"
    instant_column = "VARCHAR(32)"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return self.marker

    def placeholders(self, count: int) -> str:
        return ", ".join([self.marker] * count)

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        return self.insert_template.format(
            table=table,
            columns=", ".join(columns),
            values=self.placeholders(len(columns)),
        )

    def instant_type(self) -> str:
        return self.instant_column

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect(_LockTableDialect):
    """sqlite3 (qmark paramstyle)."""

    name = "sqlite"
    insert_template = "INSERT OR IGNORE INTO {table} ({columns}) VALUES ({values})"
    instant_column = "TEXT"


class PostgreSQLDialect(_LockTableDialect):
    """psycopg / psycopg2 (format paramstyle)."""

    name = "postgresql"
    marker = "%s"
    insert_template = "INSERT INTO {table} ({columns}) VALUES ({values}) ON CONFLICT DO NOTHING"


class MySQLDialect(_LockTableDialect):
    """mysql.connector / PyMySQL (format paramstyle).

    ``INSERT IGNORE`` also downgrades other errors to warnings; the lock
    table has no columns where that matters.
    """

    name = "mysql"
    marker = "%s"
    insert_template = "INSERT IGNORE INTO {table} ({columns}) VALUES ({values})"


_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),
    "mysql": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Look up a dialect by name (case-insensitive, ``postgres`` accepted).

    Raises:
        ValueError: If ``db_type`` is not registered.
    """
    try:
        return _DIALECTS[db_type.lower()]
    except KeyError:
        known = sorted(set(_DIALECTS) - {"postgres"})
        raise ValueError(f"Unknown dialect '{db_type}'. Supported: {known}") from None


def register_dialect(name: str, dialect: Dialect) -> None:
    """Make a custom dialect available to ``get_dialect`` and ``LockSettings``."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
