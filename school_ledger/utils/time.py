"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime, time, tzinfo


def now_local(zone: tzinfo) -> datetime:
    """Return the current wall-clock time in ``zone``."""
    return datetime.now(tz=zone)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a database timestamp into an aware datetime.

    PostgREST emits ISO strings, sometimes with a trailing ``Z``. Naive
    values are read as UTC.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return ensure_aware(value)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def start_of_day(value: datetime) -> datetime:
    """Return midnight of ``value``'s calendar date in its own timezone."""
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def start_of_year(value: datetime) -> datetime:
    """Return January 1st 00:00 of ``value``'s year in its own timezone."""
    return datetime(value.year, 1, 1, tzinfo=value.tzinfo)


def month_range(year: int, month: int, zone: tzinfo) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of a calendar month in ``zone``."""
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = datetime(year, month, 1, tzinfo=zone)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=zone)
    else:
        end = datetime(year, month + 1, 1, tzinfo=zone)
    return start, end
