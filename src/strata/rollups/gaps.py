"""Locate the next period a layer can be rolled up into."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from .layers import LayerPolicy
from .maturation import is_closed
from .models import PeriodSummary
from .time_windows import Period, next_period, window_for

__all__ = ["Gap", "find_gap", "next_gap_key"]


@dataclass(frozen=True)
class Gap:
    """The single period eligible for rollup, with its child summaries."""

    period: Period
    children: tuple[PeriodSummary, ...]

    @property
    def period_start(self) -> date:
        return self.period.start

    @property
    def period_end(self) -> date:
        return self.period.end


def next_gap_key(
    existing_parents: Sequence[PeriodSummary],
    grouped_children: dict[date, list[PeriodSummary]],
    policy: LayerPolicy,
    timezone_str: str = "UTC",
) -> date | None:
    """Key of the only period the locator may propose, before any checks.

    With no parents yet this is the earliest bucket; otherwise it is the
    period right after the latest parent, whether or not it has data.
    """
    if not existing_parents:
        if not grouped_children:
            return None
        return min(grouped_children)

    latest = max(existing_parents, key=lambda summary: summary.period_start)
    latest_period = window_for(
        latest.period_start,
        policy.layer,
        timezone_str,
        week_start_on=policy.week_start_on,
    )
    return next_period(latest_period, week_start_on=policy.week_start_on).start


def find_gap(
    existing_parents: Sequence[PeriodSummary],
    grouped_children: dict[date, list[PeriodSummary]],
    policy: LayerPolicy,
    now: datetime,
    timezone_str: str = "UTC",
) -> Gap | None:
    """Find at most one parent period lacking a summary but having child data.

    Only the period directly after the latest parent is considered; a later
    bucket is never used to skip ahead, so a period with no children stalls
    the layer at that key.

    Parameters
    ----------
    existing_parents
        Summaries already present at ``policy.layer``
    grouped_children
        Output of ``group_children`` for ``policy.layer``
    policy
        Layer policy (layer, buffer, week start)
    now
        Current instant
    timezone_str
        Owner's zone

    Returns
    -------
    Gap | None
        The gap, or None when there is nothing eligible
    """
    key = next_gap_key(existing_parents, grouped_children, policy, timezone_str)
    if key is None:
        return None

    children = grouped_children.get(key)
    if not children:
        return None

    period = window_for(key, policy.layer, timezone_str, week_start_on=policy.week_start_on)
    if not is_closed(period, now, policy.buffer):
        return None

    return Gap(period=period, children=tuple(children))
