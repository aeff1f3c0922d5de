"""
UTC timestamp utilities (stdlib-only).

Lock instants are compared across processes and stored as text in SQL
tables, so every instant is normalised to an aware UTC ``datetime`` and
serialised in one fixed-width format.

Manifesto:
    - **utc_now():** Timezone-aware UTC datetime
    - **ensure_utc():** Naive values are read as UTC, aware values converted
    - **format_instant() / parse_instant():** Fixed-width round-trip whose
      lexical order equals chronological order, so SQL ``<=`` works on TEXT

Tags:
    timestamps, utc, datetime, schedlock, stdlib-only

STDLIB ONLY - NO PYDANTIC.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]

_INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_instant(dt: datetime) -> str:
    """Serialize to ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` in UTC."""
    return ensure_utc(dt).strftime(_INSTANT_FORMAT)


def parse_instant(s: str | datetime | None) -> datetime | None:
    """Parse a stored instant back to an aware UTC datetime.

    Drivers with native timestamp columns hand back ``datetime`` objects;
    those are normalised instead of parsed.
    """
    if s is None:
        return None
    if isinstance(s, datetime):
        return ensure_utc(s)
    return datetime.strptime(s, _INSTANT_FORMAT).replace(tzinfo=UTC)
