"""
Structured logging for schedlock.

Manifesto:
    Lock contention is the steady state of a healthy fleet, so misses are
    logged at debug level.  Store failures are the interesting signal and
    must be visible in whatever aggregator the scheduler host ships logs to,
    tagged with the node that saw them.

    - **Structures:** JSON output for log aggregation, console for a TTY
    - **Correlates:** ``lock_name`` bound for the duration of a task,
      ``node.id`` on every event of a process
    - **Readable instants:** ``datetime`` values in events are rendered as
      ISO-8601 strings, so callers pass lock instants as they are

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, instance_id="node-1")
            │
            ▼
        structlog processor chain:
          1. filter_by_level            stdlib level of the "schedlock" logger
          2. TimeStamper (iso)
          3. merge_contextvars          ← LogContext(lock_name=…)
          4. add_log_level / add_logger_name
          5. _add_node_metadata         service.name, node.id
          6. _render_instants           datetime → ISO string
          7. _ecs_field_names           (JSON only)
          8. JSONRenderer | ConsoleRenderer
            │
            ▼
        stdlib logging.getLogger(name)  (WARNING+ only while unconfigured)

Examples:
    >>> from schedlock.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, instance_id="node-1")
    >>> logger = get_logger(__name__)
    >>> logger.info("lock_acquired", lock_name="job-A", path="inserted")

Tags:
    logging, structlog, observability, ecs, json-logging, schedlock

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_NODE_METADATA: dict[str, str] = {"service.name": "schedlock"}


def _add_node_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the service and the node that emitted it."""
    for key, value in _NODE_METADATA.items():
        event_dict.setdefault(key, value)
    return event_dict


def _render_instants(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, datetime):
            event_dict[key] = value.isoformat()
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename structlog's keys to their Elastic Common Schema names."""
    for old, new in (("timestamp", "@timestamp"), ("level", "log.level"), ("logger", "log.logger")):
        if old in event_dict:
            event_dict[new] = event_dict.pop(old)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "schedlock",
    instance_id: str | None = None,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of ``service.name`` on every event
        instance_id: Value of ``node.id`` on every event (omitted when None)
        add_timestamp: Include ISO timestamp in logs
    """
    _NODE_METADATA.clear()
    _NODE_METADATA["service.name"] = service
    if instance_id:
        _NODE_METADATA["node.id"] = instance_id

    if json_format is None:
        json_format = not sys.stdout.isatty()
    log_level = getattr(logging, level.upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_node_metadata,
        _render_instants,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    processors.insert(0, structlog.stdlib.filter_by_level)

    if json_format:
        processors += [_ecs_field_names, structlog.processors.format_exc_info]
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)
    logging.getLogger("schedlock").setLevel(log_level)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``).

    Events go through the stdlib logger of the same name, so levels and
    handlers follow the host's ``logging`` setup.  Until the host configures
    anything, only WARNING and above are emitted (to stderr).
    """
    return structlog.wrap_logger(
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )


def bind_context(**kwargs: Any) -> None:
    """Bind keys to every later event of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped logging context.

    Nested scopes restore the outer values on exit instead of dropping the
    keys, so a task running a locked sub-task keeps its own ``lock_name``.

    Example:
        with LogContext(lock_name="job-A"):
            logger.info("task_started")
        # lock_name back to its previous value (or unbound)
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *args) -> None:
        self.__exit__(*args)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "LogContext",
]
