"""Tests for configuration loading and rollup settings."""

from datetime import timedelta
from pathlib import Path

import pytest

from strata.core.config import Config, ConfigError, RollupSettings


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path):
    config = Config.load(tmp_path / "missing.yaml", environ={})
    settings = RollupSettings.from_config(config)

    assert settings.timezone == "UTC"
    assert settings.week_start_on == 0
    assert settings.throttle_interval == timedelta(minutes=5)
    assert settings.buffers["weekly"] == timedelta(days=7)
    assert settings.buffers["yearly"] == timedelta(days=365)
    assert settings.pipeline_log is None


def test_yaml_overrides_defaults(tmp_path):
    path = _write(
        tmp_path / "strata.yaml",
        "rollup:\n  timezone: Europe/Paris\n  buffer_days:\n    weekly: 2\nstorage:\n  db_path: data/s.db\n",
    )

    settings = RollupSettings.from_config(Config.load(path, environ={}))

    assert settings.timezone == "Europe/Paris"
    assert settings.buffers["weekly"] == timedelta(days=2)
    assert settings.buffers["monthly"] == timedelta(days=30)
    assert settings.db_path == Path("data/s.db")


def test_env_overrides_yaml(tmp_path):
    path = _write(tmp_path / "strata.yaml", "rollup:\n  timezone: Europe/Paris\n")
    environ = {"STRATA_TIMEZONE": "Asia/Tokyo", "STRATA_WEEK_START": "6", "ANTHROPIC_API_KEY": "sk-test"}

    config = Config.load(path, environ=environ)

    assert config.get("rollup.timezone") == "Asia/Tokyo"
    assert config.get("rollup.week_start_on") == 6
    assert config.get("llm.api_key") == "sk-test"


def test_invalid_env_value(tmp_path):
    with pytest.raises(ConfigError):
        Config.load(tmp_path / "missing.yaml", environ={"STRATA_WEEK_START": "monday"})


def test_unparseable_yaml(tmp_path):
    path = _write(tmp_path / "strata.yaml", "rollup: [unclosed\n")

    with pytest.raises(ConfigError):
        Config.load(path, environ={})


def test_yaml_must_be_mapping(tmp_path):
    path = _write(tmp_path / "strata.yaml", "- a\n- b\n")

    with pytest.raises(ConfigError):
        Config.load(path, environ={})


@pytest.mark.parametrize(
    "key,value",
    [
        ("rollup.timezone", "Mars/Olympus"),
        ("rollup.week_start_on", 7),
        ("rollup.throttle_minutes", -1),
        ("rollup.decrypt_workers", 0),
        ("rollup.buffer_days.weekly", -2),
    ],
)
def test_invalid_settings_rejected(tmp_path, key, value):
    config = Config.load(tmp_path / "missing.yaml", environ={})
    config.set(key, value)

    with pytest.raises(ConfigError):
        RollupSettings.from_config(config)


def test_get_and_set_dot_notation():
    config = Config({})
    config.set("a.b.c", 1)

    assert config.get("a.b.c") == 1
    assert config.get("a.x", "fallback") == "fallback"
    assert config.to_dict() == {"a": {"b": {"c": 1}}}


def test_load_does_not_mutate_defaults(tmp_path):
    first = Config.load(tmp_path / "missing.yaml", environ={"STRATA_TIMEZONE": "Asia/Tokyo"})
    second = Config.load(tmp_path / "missing.yaml", environ={})

    assert first.get("rollup.timezone") == "Asia/Tokyo"
    assert second.get("rollup.timezone") == "UTC"
