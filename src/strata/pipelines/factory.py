"""Build the rollup engine from configuration.

Wires ``Config`` into the LLM adapter, the summary generator, the pipeline
and per-layer triggers. The cipher is always supplied by the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from ..adapters.llm.adapter import LLMAdapter
from ..adapters.llm.anthropic_adapter import AnthropicAdapter
from ..core.config import Config, ConfigError, RollupSettings
from ..generation.llm_generator import LLMSummaryGenerator
from ..rollups.contracts import Cipher, SummaryGenerator, SummaryRepository
from ..rollups.models import Owner
from ..storage.summary_store import SummaryStore
from .rollup_pipeline import RollupPipeline, create_rollup_pipeline
from .trigger import RollupTrigger

__all__ = [
    "create_llm_adapter",
    "create_pipeline_from_config",
    "create_summary_generator",
    "create_trigger",
]


def create_llm_adapter(config: Config) -> AnthropicAdapter:
    """Anthropic adapter from ``llm.api_key`` and ``llm.model``.

    Raises
    ------
    ConfigError
        If no API key is configured
    """
    api_key = config.get("llm.api_key") or ""
    if not api_key:
        raise ConfigError("llm.api_key is not set (set ANTHROPIC_API_KEY)")

    return AnthropicAdapter(api_key=api_key, default_model=str(config.get("llm.model")))


def create_summary_generator(
    config: Config,
    *,
    adapter: LLMAdapter | None = None,
    store: SummaryStore | None = None,
) -> LLMSummaryGenerator:
    """LLM generator using the ``llm`` request settings.

    Parameters
    ----------
    config
        Loaded configuration
    adapter
        Chat provider (default: built with ``create_llm_adapter``)
    store
        When given, periods already present in the store are not regenerated
    """
    try:
        temperature = float(config.get("llm.temperature"))
        max_tokens = int(config.get("llm.max_tokens"))
        timeout = float(config.get("llm.timeout"))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid llm settings: {exc}") from exc

    exists_lookup = None
    if store is not None:

        def exists_lookup(owner_id, layer, period_start):
            return store.get_summary(owner_id, layer, period_start) is not None

    return LLMSummaryGenerator(
        adapter or create_llm_adapter(config),
        exists_lookup=exists_lookup,
        model=config.get("llm.model"),
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
    )


def create_pipeline_from_config(
    config: Config,
    *,
    repository: SummaryRepository,
    cipher: Cipher,
    generator: SummaryGenerator | None = None,
    clock: Callable[[], datetime] | None = None,
) -> RollupPipeline:
    """Pipeline with buffers, week start, decrypt workers and event log from ``config``.

    Without an explicit ``generator`` the LLM generator is built, checking
    ``repository`` for existing periods when it is a ``SummaryStore``.
    """
    settings = RollupSettings.from_config(config)

    if generator is None:
        store = repository if isinstance(repository, SummaryStore) else None
        generator = create_summary_generator(config, store=store)

    return create_rollup_pipeline(
        repository=repository,
        cipher=cipher,
        generator=generator,
        clock=clock,
        log_path=settings.pipeline_log,
        buffers=settings.buffers,
        week_start_on=settings.week_start_on,
        decrypt_workers=settings.decrypt_workers,
    )


def create_trigger(
    config: Config,
    pipeline: RollupPipeline,
    layer: str,
    owner: Owner,
    *,
    clock: Callable[[], datetime] | None = None,
) -> RollupTrigger:
    """Trigger throttled by ``rollup.throttle_minutes``."""
    settings = RollupSettings.from_config(config)
    return RollupTrigger(pipeline, layer, owner, min_interval=settings.throttle_interval, clock=clock)
