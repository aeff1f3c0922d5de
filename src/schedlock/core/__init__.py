"""schedlock core -- errors, logging, settings, time and SQL primitives.

Architecture::

    errors.py        Structured error hierarchy (SchedLockError, StoreError)
    logging.py       structlog configuration (configure_logging, get_logger)
    settings.py      LockSettings (pydantic-settings, SCHEDLOCK_ prefix)
    timestamps.py    UTC helpers and fixed-width instant format (stdlib-only)
    protocols.py     DB-API Connection protocol
    dialect.py       SQL dialect fragments for the lock table

Submodules are imported explicitly; nothing is re-exported here.  The
top-level ``schedlock`` package re-exports the public names, including
``LockSettings``.
"""
