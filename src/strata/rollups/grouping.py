"""Group child summaries into buckets keyed by enclosing parent period."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from .models import PeriodSummary
from .time_windows import window_for

__all__ = ["group_children"]


def group_children(
    children: Iterable[PeriodSummary],
    layer: str,
    timezone_str: str = "UTC",
    *,
    week_start_on: int = 0,
) -> dict[date, list[PeriodSummary]]:
    """Partition child summaries by the ``layer`` period enclosing each one.

    The key is the parent window start computed from each child's own
    ``period_start``. Buckets come back ordered by key and children within a
    bucket by ``period_start``; periods without children get no bucket.

    Parameters
    ----------
    children
        Summaries of the child layer
    layer
        Parent layer to group by
    timezone_str
        Owner's zone
    week_start_on
        Day of week weeks start on

    Returns
    -------
    dict[date, list[PeriodSummary]]
        Parent period start → ordered children
    """
    buckets: dict[date, list[PeriodSummary]] = defaultdict(list)

    for child in children:
        key = window_for(child.period_start, layer, timezone_str, week_start_on=week_start_on).start
        buckets[key].append(child)

    return {
        key: sorted(buckets[key], key=lambda child: (child.period_start, child.id))
        for key in sorted(buckets)
    }
