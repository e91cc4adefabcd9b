"""
Datetime helpers.

All timestamps are stored and compared as timezone-aware UTC. Backends that
drop tz info on read (SQLite) are normalised with ensure_utc.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

# Smallest step the storage backends keep without rounding
TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Use this instead of datetime.utcnow() to ensure timezone awareness.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure datetime is UTC timezone-aware.

    Naive datetimes are assumed to already be UTC.

    Example:
        >>> ensure_utc(datetime(2025, 12, 16, 11, 30)).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def strictly_after(now: datetime, previous: datetime | None) -> datetime:
    """
    Return now, or one tick after previous when the clock has not advanced past it.

    Used to keep per-conversation message timestamps (and per-user reaction
    timestamps) strictly increasing even when two writes share a clock reading.
    """
    now = ensure_utc(now)
    previous = ensure_utc(previous)
    if previous is not None and now <= previous:
        return previous + TICK
    return now


def to_iso_utc(dt: datetime | None) -> str | None:
    """
    Convert datetime to ISO format with 'Z' suffix.

    Example:
        >>> to_iso_utc(datetime(2025, 12, 16, 11, 30, tzinfo=timezone.utc))
        '2025-12-16T11:30:00Z'
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')
