"""Reference implementations of the ``LockStore`` contract.

    memory.py   InMemoryLockStore  (threads of one process, tests)
    sql.py      SqlLockStore       (DB-API connection + dialect)
"""

from .memory import InMemoryLockStore
from .sql import SqlLockStore

__all__ = ["InMemoryLockStore", "SqlLockStore"]
