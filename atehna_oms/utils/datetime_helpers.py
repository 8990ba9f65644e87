"""
Utility functions for date and time handling.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

LJUBLJANA = ZoneInfo("Europe/Ljubljana")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read from the database to aware UTC.
    SQLite returns naive values which are stored as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_datetime_iso(dt: Optional[datetime]) -> Optional[str]:
    """ISO 8601 string in UTC, or None."""
    normalized = as_utc(dt)
    return normalized.isoformat() if normalized else None


def format_datetime_local(dt: Optional[datetime]) -> Optional[str]:
    """
    Admin display format in local (Ljubljana) time, e.g. "17. 10. 2026, 14:05".
    """
    normalized = as_utc(dt)
    if normalized is None:
        return None
    local = normalized.astimezone(LJUBLJANA)
    return f"{local.day}. {local.month}. {local.year}, {local:%H:%M}"
