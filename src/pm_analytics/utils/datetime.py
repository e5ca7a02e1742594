"""Datetime utilities with consistent UTC timezone handling.

All analytics computations compare timezone-aware datetimes. Record parsers
and report queries funnel every incoming value through these helpers so
naive values and ISO strings end up as UTC-aware datetimes.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

SECONDS_PER_DAY = 86400


def now_utc() -> datetime:
    """Return current datetime in UTC timezone."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.
    
    Args:
        dt: Datetime to check/convert, or None
        
    Returns:
        Timezone-aware datetime, or None if input was None
    """
    if dt is None:
        return None
    
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    
    return dt


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO string, date or datetime into an aware datetime.
    
    Returns None for empty values. Raises ValueError when a string cannot
    be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_aware(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported datetime value: {value!r}")


def start_of_day(value: date) -> datetime:
    """First instant of a calendar day in UTC."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_of_day(value: date) -> datetime:
    """Last instant of a calendar day in UTC."""
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, truncated toward zero."""
    delta = ensure_aware(later) - ensure_aware(earlier)
    return int(delta.total_seconds() / SECONDS_PER_DAY)


def add_days(dt: datetime, days: float) -> datetime:
    """Shift a datetime by a (possibly fractional) number of days."""
    return dt + timedelta(days=days)


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string with timezone info."""
    if dt is None:
        return None
    return ensure_aware(dt).isoformat()
