"""Rate-limited, caller-driven entry point for one layer and one owner."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from ..core.time import get_current_utc
from ..observability.loguru_config import get_logger
from ..rollups.layers import validate_layer
from ..rollups.models import Owner
from .rollup_pipeline import RollupPipeline, RollupResult

__all__ = ["DEFAULT_MIN_INTERVAL", "RollupTrigger"]

DEFAULT_MIN_INTERVAL = timedelta(minutes=5)

logger = get_logger("rollup")


class RollupTrigger:
    """Throttles opportunistic rollup passes (e.g. on view load).

    Holds its own ``last_checked_at``; nothing is shared between triggers,
    owners or layers. The throttle only limits redundant calls; duplicate
    summaries are prevented by the store.
    """

    def __init__(
        self,
        pipeline: RollupPipeline,
        layer: str,
        owner: Owner,
        *,
        min_interval: timedelta = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.layer = validate_layer(layer, rollup_only=True)
        self.owner = owner
        self.min_interval = min_interval
        self.clock = clock or get_current_utc
        self.last_checked_at: datetime | None = None

    def is_throttled(self, now: datetime | None = None) -> bool:
        if self.last_checked_at is None:
            return False
        now = now or self.clock()
        return now - self.last_checked_at < self.min_interval

    def fire(self) -> RollupResult | None:
        """Run a pass unless one ran less than ``min_interval`` ago.

        Returns
        -------
        RollupResult | None
            The pass result, or None when throttled
        """
        now = self.clock()
        if self.is_throttled(now):
            logger.debug(
                "Rollup trigger throttled",
                layer=self.layer,
                owner_id=self.owner.owner_id,
                last_checked_at=self.last_checked_at.isoformat() if self.last_checked_at else None,
            )
            return None

        try:
            return self.pipeline.run_once(self.layer, self.owner)
        finally:
            self.last_checked_at = now
