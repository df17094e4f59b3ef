"""Clock Helpers — timezone-aware UTC everywhere.

Invariants:
    - Every datetime that leaves this module is timezone-aware UTC

Design Decisions:
    - ensure_utc exists because SQLite drops tzinfo on DateTime(timezone=True) columns;
      PostgreSQL keeps it. Comparing naive and aware datetimes raises TypeError.
"""

from datetime import datetime, timezone


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
