"""Rollup Pipeline - advances one layer of the summary hierarchy by one period.

One generic pipeline serves every layer (daily→weekly, weekly→monthly,
monthly→yearly); the layer policy supplies the period function, the
maturation buffer and the child layer.

A pass: list parents and children → group → locate gap → decrypt children →
generate → encrypt → persist. ``run_once`` never raises; every failure is
reported on the returned ``RollupResult``.
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.time import format_utc_iso8601, get_current_utc
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.contracts import (
    Cipher,
    GenerationResult,
    SummaryGenerator,
    SummaryRepository,
)
from ..rollups.gaps import Gap, find_gap
from ..rollups.grouping import group_children
from ..rollups.layers import ROLLUP_LAYERS, LayerPolicy, get_layer_policy
from ..rollups.models import DecryptedChild, Owner, PeriodSummary

__all__ = [
    "RollupPipeline",
    "RollupPipelineConfig",
    "RollupResult",
    "create_rollup_pipeline",
]


@dataclass
class RollupPipelineConfig:
    """Configuration for rollup pipeline."""

    buffers: dict[str, timedelta] = field(default_factory=dict)
    week_start_on: int = 0
    decrypt_workers: int = 4
    log_path: Path | None = None


@dataclass
class RollupResult:
    """Result of one rollup pass."""

    created: bool
    layer: str
    owner_id: str
    trace_id: str
    summary_id: str | None = None
    error: str | None = None
    period_start: date | None = None
    period_end: date | None = None
    children_count: int = 0
    skipped_children: int = 0
    duration_ms: float = 0.0


class RollupPipeline:
    """Orchestrates a single rollup pass for one layer and one owner.

    Responsibilities:
    - Locate at most one closed, contiguous gap
    - Decrypt its children, dropping any that fail
    - Hand survivors to the generator, encrypt and persist the output
    - Emit structured events with a trace ID

    Example:
        >>> pipeline = create_rollup_pipeline(
        ...     repository=store,
        ...     cipher=cipher,
        ...     generator=generator,
        ... )
        >>> result = pipeline.run_once("weekly", Owner("alice", timezone="Europe/Paris"))
    """

    def __init__(
        self,
        config: RollupPipelineConfig,
        *,
        repository: SummaryRepository,
        cipher: Cipher,
        generator: SummaryGenerator,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize rollup pipeline.

        Parameters
        ----------
        config
            Pipeline configuration
        repository
            Summary store (lists and persists summaries)
        cipher
            Per-owner encryption
        generator
            Generation service for parent prose
        clock
            Returns the current UTC time (default: wall clock)
        """
        self.config = config
        self.repository = repository
        self.cipher = cipher
        self.generator = generator
        self.clock = clock or get_current_utc
        self.logger = get_logger("rollup")

    def policy_for(self, layer: str) -> LayerPolicy:
        return get_layer_policy(
            layer,
            buffers=self.config.buffers,
            week_start_on=self.config.week_start_on,
        )

    def locate_gap(self, layer: str, owner: Owner) -> Gap | None:
        """Find the next gap for ``owner`` at ``layer`` without generating anything.

        Raises
        ------
        RollupError
            If listing summaries fails
        """
        policy = self.policy_for(layer)
        parents = self.repository.list_summaries(owner.owner_id, policy.layer)
        children = self.repository.list_summaries(owner.owner_id, policy.child_layer)

        grouped = group_children(
            children,
            policy.layer,
            owner.timezone,
            week_start_on=policy.week_start_on,
        )
        return find_gap(parents, grouped, policy, self.clock(), owner.timezone)

    def run_once(self, layer: str, owner: Owner) -> RollupResult:
        """Advance ``layer`` for ``owner`` by at most one period.

        Parameters
        ----------
        layer
            Rollup layer ("weekly", "monthly", "yearly")
        owner
            Owner whose summaries are rolled up

        Returns
        -------
        RollupResult
            ``created`` is True only when a new summary was persisted
        """
        trace_id = str(uuid.uuid4())
        start_time = time.time()
        result = RollupResult(created=False, layer=layer, owner_id=owner.owner_id, trace_id=trace_id)

        self._log_event(
            "pipeline_started",
            {"trace_id": trace_id, "layer": layer, "owner_id": owner.owner_id},
        )

        try:
            self._run(layer, owner, result)
        except Exception as exc:
            result.created = False
            result.summary_id = None
            result.error = f"{type(exc).__name__}: {exc}"
            self._log_event(
                "pipeline_failed",
                {
                    "trace_id": trace_id,
                    "layer": layer,
                    "owner_id": owner.owner_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "outcome": "failure",
                },
            )

        result.duration_ms = (time.time() - start_time) * 1000

        self._log_event(
            "pipeline_completed",
            {
                "trace_id": trace_id,
                "layer": layer,
                "owner_id": owner.owner_id,
                "created": result.created,
                "summary_id": result.summary_id,
                "period_start": result.period_start.isoformat() if result.period_start else None,
                "children_count": result.children_count,
                "skipped_children": result.skipped_children,
                "duration_ms": result.duration_ms,
                "outcome": "failure" if result.error else "success",
            },
        )

        return result

    def run_all_layers(self, owner: Owner) -> list[RollupResult]:
        """Run one pass per rollup layer, bottom-up.

        A summary created at a lower layer becomes visible to the next layer
        within the same call; each layer still moves by at most one period.
        """
        return [self.run_once(layer, owner) for layer in ROLLUP_LAYERS]

    def _run(self, layer: str, owner: Owner, result: RollupResult) -> None:
        gap = self.locate_gap(layer, owner)
        if gap is None:
            return

        result.period_start = gap.period_start
        result.period_end = gap.period_end
        self._log_event(
            "gap_located",
            {
                "trace_id": result.trace_id,
                "layer": layer,
                "period_start": gap.period_start.isoformat(),
                "period_end": gap.period_end.isoformat(),
                "children": len(gap.children),
            },
        )

        decrypted = self._decrypt_children(owner, gap.children, result.trace_id)
        result.children_count = len(decrypted)
        result.skipped_children = len(gap.children) - len(decrypted)

        if not decrypted:
            self.logger.info(
                "No readable child summaries, skipping",
                trace_id=result.trace_id,
                layer=layer,
                period_start=gap.period_start.isoformat(),
            )
            return

        with timing_context("generate", component="rollup", trace_id=result.trace_id, layer=layer):
            generated: GenerationResult = self.generator.generate_parent_content(
                layer,
                gap.period,
                decrypted,
                owner,
            )

        if generated.already_exists:
            self.logger.info(
                "Period already summarized by another writer",
                trace_id=result.trace_id,
                layer=layer,
                period_start=gap.period_start.isoformat(),
            )
            return

        content = self.cipher.encrypt(owner.owner_id, generated.content)
        supplementary = (
            self.cipher.encrypt(owner.owner_id, generated.supplementary_content)
            if generated.supplementary_content
            else None
        )

        persisted = self.repository.persist_parent_summary(
            owner.owner_id,
            layer,
            gap.period,
            content,
            supplementary,
            [child.id for child in decrypted],
        )

        if persisted.already_exists:
            self.logger.info(
                "Lost race persisting summary",
                trace_id=result.trace_id,
                layer=layer,
                period_start=gap.period_start.isoformat(),
            )
            return

        if not persisted.success:
            result.error = f"Failed to persist {layer} summary for {gap.period_start.isoformat()}"
            return

        result.created = True
        result.summary_id = persisted.summary_id

    def _decrypt_children(
        self,
        owner: Owner,
        children: Sequence[PeriodSummary],
        trace_id: str,
    ) -> list[DecryptedChild]:
        """Decrypt children concurrently, keeping order and dropping failures."""

        def decrypt_one(child: PeriodSummary) -> DecryptedChild | None:
            try:
                plaintext = self.cipher.decrypt(owner.owner_id, child.content)
            except Exception as exc:
                self.logger.warning(
                    "Failed to decrypt child summary",
                    trace_id=trace_id,
                    child_id=child.id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return None
            return DecryptedChild(
                id=child.id,
                period_start=child.period_start,
                period_end=child.period_end,
                content=plaintext,
            )

        workers = max(1, min(self.config.decrypt_workers, len(children)))
        with timing_context("decrypt_children", component="rollup", trace_id=trace_id) as ctx:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                decrypted = [item for item in executor.map(decrypt_one, children) if item is not None]
            ctx["decrypted"] = len(decrypted)

        return decrypted

    def _log_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Emit structured log entry, also appended to the JSONL log if configured.

        An unwritable JSONL log is reported as a warning and never fails the pass.
        """
        log_entry = {
            "timestamp": format_utc_iso8601(get_current_utc()),
            "component": "pipeline",
            "pipeline": "rollup",
            "event_type": event_type,
            **data,
        }

        if self.config.log_path:
            try:
                self.config.log_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.config.log_path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            except OSError as exc:
                self.logger.warning(
                    "Failed to write pipeline event log",
                    log_path=str(self.config.log_path),
                    event_type=event_type,
                    error=str(exc),
                )

        if data.get("outcome") == "failure":
            self.logger.error(event_type, **data)
        else:
            self.logger.info(event_type, **data)


def create_rollup_pipeline(
    *,
    repository: SummaryRepository,
    cipher: Cipher,
    generator: SummaryGenerator,
    clock: Callable[[], datetime] | None = None,
    log_path: Path | str | None = None,
    **config_kwargs: Any,
) -> RollupPipeline:
    """Factory function to create rollup pipeline.

    Parameters
    ----------
    repository
        Summary store
    cipher
        Per-owner encryption
    generator
        Generation service
    clock
        Optional clock returning current UTC time
    log_path
        Optional path for JSONL pipeline events
    **config_kwargs
        Additional ``RollupPipelineConfig`` options

    Returns
    -------
    RollupPipeline
        Configured pipeline instance
    """
    if log_path:
        config_kwargs["log_path"] = Path(log_path)

    config = RollupPipelineConfig(**config_kwargs)

    return RollupPipeline(
        config,
        repository=repository,
        cipher=cipher,
        generator=generator,
        clock=clock,
    )
