"""Period windows with timezone and DST awareness.

Compute a period's calendar window (day, week, month, year) in the owner's
zone, and the UTC instants bounding it. Instants are projected into the zone
before calendar components are taken, so a late-evening UTC timestamp never
lands in the wrong local day.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pytz

from ..core.time import localize_to_date
from .layers import validate_layer

__all__ = [
    "Period",
    "compute_boundaries_utc",
    "get_week_start",
    "next_period",
    "window_for",
]


@dataclass(frozen=True)
class Period:
    """A calendar period at one layer.

    Attributes
    ----------
    layer : str
        Layer of the period ("daily", "weekly", "monthly", "yearly")
    start : date
        First local day of the period
    end : date
        Last local day of the period (inclusive)
    timezone : str
        Zone the calendar days are expressed in
    """

    layer: str
    start: date
    end: date
    timezone: str = "UTC"

    @property
    def start_utc(self) -> datetime:
        """Local midnight opening the period, in UTC."""
        return _local_midnight_utc(self.start, self.timezone)

    @property
    def end_utc(self) -> datetime:
        """Local midnight after the last day, in UTC (exclusive bound)."""
        return _local_midnight_utc(self.end + timedelta(days=1), self.timezone)


def _local_midnight_utc(day: date, timezone_str: str) -> datetime:
    tz = pytz.timezone(timezone_str)
    local = tz.localize(datetime(day.year, day.month, day.day, 0, 0, 0))
    return local.astimezone(pytz.UTC)


def get_week_start(day: date, start_on: int = 0) -> date:
    """Get start of week for a date.

    Parameters
    ----------
    day
        Date to get week start for
    start_on
        Day of week to start on (0=Monday, 6=Sunday)
    """
    days_since_start = (day.weekday() - start_on) % 7
    return day - timedelta(days=days_since_start)


def window_for(
    instant: datetime | date,
    layer: str,
    timezone_str: str = "UTC",
    *,
    week_start_on: int = 0,
) -> Period:
    """Compute the period of ``layer`` containing ``instant``.

    Parameters
    ----------
    instant
        Aware datetime, naive datetime (read as UTC), or local calendar date
    layer
        Layer of the window
    timezone_str
        Owner's IANA zone
    week_start_on
        Day of week weeks start on (0=Monday, 6=Sunday)

    Returns
    -------
    Period
        Window containing the local date of ``instant``

    Examples
    --------
    >>> window_for(date(2024, 1, 3), "weekly")
    Period(layer='weekly', start=datetime.date(2024, 1, 1), end=datetime.date(2024, 1, 7), timezone='UTC')
    """
    validate_layer(layer)
    local_day = localize_to_date(instant, timezone_str)

    if layer == "daily":
        start = end = local_day
    elif layer == "weekly":
        start = get_week_start(local_day, start_on=week_start_on)
        end = start + timedelta(days=6)
    elif layer == "monthly":
        start = local_day.replace(day=1)
        end = local_day.replace(day=calendar.monthrange(local_day.year, local_day.month)[1])
    else:
        start = date(local_day.year, 1, 1)
        end = date(local_day.year, 12, 31)

    return Period(layer=layer, start=start, end=end, timezone=timezone_str)


def next_period(period: Period, *, week_start_on: int = 0) -> Period:
    """Return the period immediately following ``period`` at the same layer."""
    return window_for(
        period.end + timedelta(days=1),
        period.layer,
        period.timezone,
        week_start_on=week_start_on,
    )


def compute_boundaries_utc(
    local_date: date,
    layer: str,
    timezone_str: str = "UTC",
    week_start_on: int = 0,
) -> tuple[datetime, datetime]:
    """Compute UTC boundaries ``[start, end)`` of the window containing a local date.

    A local day may be 23, 24 or 25 hours long in UTC across DST transitions.
    """
    period = window_for(local_date, layer, timezone_str, week_start_on=week_start_on)
    return period.start_utc, period.end_utc
