"""Tests for building the rollup engine from configuration."""

import json
from datetime import date, timedelta

import pytest

from rollup_fakes import FakeCipher, FakeGenerator, FixedClock, add_daily, make_summary, utc
from strata.adapters.llm import AnthropicAdapter, LLMResponse
from strata.core.config import Config, ConfigError
from strata.generation import LLMSummaryGenerator
from strata.pipelines.factory import (
    create_llm_adapter,
    create_pipeline_from_config,
    create_summary_generator,
    create_trigger,
)
from strata.rollups.models import Owner
from strata.rollups.time_windows import window_for


class RecordingAdapter:
    def __init__(self):
        self.calls = []

    def chat(self, messages, **kwargs):
        self.calls.append(kwargs)
        return LLMResponse(content=json.dumps({"objectiveSummary": "Summary", "encouragingProof": "Proof"}))


@pytest.fixture
def config(tmp_path):
    return Config.load(tmp_path / "absent.yaml", environ={"ANTHROPIC_API_KEY": "sk-test"})


class TestLLMWiring:
    def test_adapter_from_config(self, config):
        config.set("llm.model", "claude-test")

        adapter = create_llm_adapter(config)

        assert isinstance(adapter, AnthropicAdapter)
        assert adapter.api_key == "sk-test"
        assert adapter.default_model == "claude-test"

    def test_adapter_requires_key(self, tmp_path):
        config = Config.load(tmp_path / "absent.yaml", environ={})

        with pytest.raises(ConfigError):
            create_llm_adapter(config)

    def test_generator_uses_request_settings(self, config):
        config.set("llm.temperature", 0.5)
        config.set("llm.max_tokens", 500)
        config.set("llm.timeout", 12)
        adapter = RecordingAdapter()

        generator = create_summary_generator(config, adapter=adapter)
        generator.generate_parent_content("weekly", window_for(date(2024, 1, 1), "weekly"), [], Owner("alice"))

        assert adapter.calls[0]["temperature"] == 0.5
        assert adapter.calls[0]["max_tokens"] == 500
        assert adapter.calls[0]["timeout"] == 12.0
        assert adapter.calls[0]["model"] == config.get("llm.model")

    def test_generator_skips_periods_in_store(self, config, store):
        store.add_summary(make_summary("alice", "weekly", date(2024, 1, 1), date(2024, 1, 7)))
        adapter = RecordingAdapter()
        generator = create_summary_generator(config, adapter=adapter, store=store)

        result = generator.generate_parent_content("weekly", window_for(date(2024, 1, 1), "weekly"), [], Owner("alice"))

        assert result.already_exists is True
        assert adapter.calls == []

    def test_invalid_llm_setting(self, config):
        config.set("llm.max_tokens", "lots")

        with pytest.raises(ConfigError):
            create_summary_generator(config, adapter=RecordingAdapter())


class TestPipelineWiring:
    def test_rollup_settings_reach_pipeline(self, config, store, tmp_path):
        config.set("rollup.decrypt_workers", 2)
        config.set("rollup.week_start_on", 6)
        config.set("rollup.buffer_days.weekly", 0)
        config.set("logging.pipeline_log", str(tmp_path / "events.jsonl"))

        pipeline = create_pipeline_from_config(config, repository=store, cipher=FakeCipher(), generator=FakeGenerator())

        assert pipeline.config.decrypt_workers == 2
        assert pipeline.config.week_start_on == 6
        assert pipeline.config.log_path == tmp_path / "events.jsonl"
        assert pipeline.policy_for("weekly").buffer == timedelta(0)
        assert pipeline.policy_for("monthly").buffer == timedelta(days=30)

    def test_default_generator_is_llm_backed(self, config, store):
        pipeline = create_pipeline_from_config(config, repository=store, cipher=FakeCipher())

        assert isinstance(pipeline.generator, LLMSummaryGenerator)
        assert pipeline.generator.exists_lookup is not None

    def test_end_to_end_with_configured_generator(self, config, store, tmp_path):
        config.set("logging.pipeline_log", str(tmp_path / "events.jsonl"))
        add_daily(store, "alice", date(2024, 1, 1), 7)
        generator = create_summary_generator(config, adapter=RecordingAdapter(), store=store)
        pipeline = create_pipeline_from_config(
            config,
            repository=store,
            cipher=FakeCipher(),
            generator=generator,
            clock=FixedClock(utc(2024, 1, 20)),
        )

        result = pipeline.run_once("weekly", Owner("alice"))

        saved = store.get_summary("alice", "weekly", date(2024, 1, 1))
        assert result.created is True
        assert saved.content == "enc:alice:Summary"
        assert saved.supplementary_content == "enc:alice:Proof"
        assert (tmp_path / "events.jsonl").exists()


def test_trigger_uses_throttle_setting(config, store):
    config.set("rollup.throttle_minutes", 10)
    clock = FixedClock(utc(2024, 1, 20))
    pipeline = create_pipeline_from_config(config, repository=store, cipher=FakeCipher(), generator=FakeGenerator())

    trigger = create_trigger(config, pipeline, "weekly", Owner("alice"), clock=clock)

    assert trigger.min_interval == timedelta(minutes=10)
    trigger.fire()
    clock.advance(timedelta(minutes=9))
    assert trigger.fire() is None
