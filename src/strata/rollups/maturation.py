"""Maturation policy: is a period permanently closed."""

from __future__ import annotations

from datetime import datetime, timedelta

from ..core.time import ensure_utc
from .time_windows import Period

__all__ = ["closes_at", "is_closed"]


def closes_at(period: Period, buffer: timedelta) -> datetime:
    """Earliest instant at which ``period`` may be summarized."""
    return period.end_utc + buffer


def is_closed(period: Period, now: datetime, buffer: timedelta) -> bool:
    """True once ``now`` is at least ``buffer`` past the period's end.

    The buffer absorbs late child writes landing near the boundary.
    """
    return ensure_utc(now) >= closes_at(period, buffer)
