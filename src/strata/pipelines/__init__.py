"""Rollup orchestration and invocation."""

from .factory import create_llm_adapter, create_pipeline_from_config, create_summary_generator, create_trigger
from .rollup_pipeline import RollupPipeline, RollupPipelineConfig, RollupResult, create_rollup_pipeline
from .trigger import DEFAULT_MIN_INTERVAL, RollupTrigger

__all__ = [
    "DEFAULT_MIN_INTERVAL",
    "RollupPipeline",
    "RollupPipelineConfig",
    "RollupResult",
    "RollupTrigger",
    "create_llm_adapter",
    "create_pipeline_from_config",
    "create_rollup_pipeline",
    "create_summary_generator",
    "create_trigger",
]
