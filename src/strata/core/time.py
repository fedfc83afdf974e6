"""Time and timezone utilities for Strata.

UTC discipline: every persisted timestamp is an ISO-8601 UTC string.
Calendar math for periods happens in the owner's zone (see rollups.time_windows).
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytz

__all__ = [
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "localize_to_date",
    "parse_utc_iso8601",
    "validate_timezone",
]


def get_current_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime.

    Naive datetimes are taken to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Example
    -------
    >>> format_utc_iso8601(datetime(2025, 10, 8, 12, 30, tzinfo=timezone.utc))
    '2025-10-08T12:30:00+00:00'
    """
    return ensure_utc(dt).isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Raises
    ------
    ValueError
        If string is not valid ISO-8601
    """
    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)


def validate_timezone(timezone_str: str) -> str:
    """Check that ``timezone_str`` is a known IANA zone.

    Raises
    ------
    ValueError
        If the zone is unknown
    """
    try:
        pytz.timezone(timezone_str)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Invalid timezone: {timezone_str}") from exc
    return timezone_str


def localize_to_date(instant: datetime | date, timezone_str: str) -> date:
    """Project an instant into a zone and take its calendar date.

    Parameters
    ----------
    instant
        Aware datetime, naive datetime (read as UTC), or a ``date`` that is
        already a local calendar date
    timezone_str
        IANA zone name

    Returns
    -------
    date
        Local calendar date of ``instant`` in ``timezone_str``
    """
    if not isinstance(instant, datetime):
        return instant

    tz = pytz.timezone(timezone_str)
    return ensure_utc(instant).astimezone(tz).date()
