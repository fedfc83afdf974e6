"""Centralized configuration management for Strata.

Supports:
- Built-in defaults
- User overrides from strata.yaml
- Environment variable overrides (STRATA_*)
- Nested key access with dot notation
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from .time import validate_timezone

__all__ = [
    "ConfigError",
    "Config",
    "DEFAULTS",
    "RollupSettings",
]


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


DEFAULTS: dict[str, Any] = {
    "storage": {
        "db_path": "strata.db",
    },
    "rollup": {
        "timezone": "UTC",
        "week_start_on": 0,
        "throttle_minutes": 5,
        "decrypt_workers": 4,
        "buffer_days": {
            "daily": 1,
            "weekly": 7,
            "monthly": 30,
            "yearly": 365,
        },
    },
    "logging": {
        "level": "INFO",
        "dir": "logs",
        "pipeline_log": None,
    },
    "llm": {
        "api_key": "",
        "model": "claude-3-5-sonnet-20241022",
        "temperature": 0.3,
        "max_tokens": 2000,
        "timeout": 60.0,
    },
}

# env var -> (config key, converter)
ENV_MAPPINGS: dict[str, tuple[str, Any]] = {
    "STRATA_DB_PATH": ("storage.db_path", str),
    "STRATA_TIMEZONE": ("rollup.timezone", str),
    "STRATA_WEEK_START": ("rollup.week_start_on", int),
    "STRATA_THROTTLE_MINUTES": ("rollup.throttle_minutes", float),
    "STRATA_LOG_LEVEL": ("logging.level", str),
    "STRATA_LOG_DIR": ("logging.dir", str),
    "ANTHROPIC_API_KEY": ("llm.api_key", str),
    "STRATA_LLM_MODEL": ("llm.model", str),
}


class Config:
    """Configuration with defaults, YAML overrides, and env vars.

    Configuration priority (highest to lowest):
    1. Environment variables (STRATA_*, ANTHROPIC_API_KEY)
    2. User config (strata.yaml)
    3. Built-in defaults

    Example:
        >>> config = Config.load()
        >>> config.get("rollup.timezone", "UTC")
        'UTC'
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        *,
        environ: dict[str, str] | None = None,
    ) -> Config:
        """Load configuration from defaults, file, and environment.

        Parameters
        ----------
        config_path
            Path to user config file (default: strata.yaml)
        environ
            Environment mapping (default: os.environ)

        Returns
        -------
        Config
            Loaded configuration instance

        Raises
        ------
        ConfigError
            If the config file exists but cannot be parsed
        """
        if config_path is None:
            config_path = Path("strata.yaml")

        user_config = cls._load_yaml_file(config_path) if Path(config_path).exists() else {}

        merged = cls._deep_merge(copy.deepcopy(DEFAULTS), user_config)
        merged = cls._apply_env_overrides(merged, os.environ if environ is None else environ)

        return cls(merged)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        - "rollup.timezone" → config["rollup"]["timezone"]
        """
        value: Any = self._data

        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by dot-notation key."""
        parts = key.split(".")
        data = self._data

        for part in parts[:-1]:
            if not isinstance(data.get(part), dict):
                data[part] = {}
            data = data[part]

        data[parts[-1]] = value

    def to_dict(self) -> dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self._data)

    @staticmethod
    def _load_yaml_file(path: str | Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to load config from {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping at the top level")

        return data

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _apply_env_overrides(config: dict[str, Any], environ: Any) -> dict[str, Any]:
        """Apply environment variable overrides.

        Example: STRATA_TIMEZONE=Europe/Paris overrides config["rollup"]["timezone"]
        """
        result = Config(config)

        for env_var, (config_key, convert) in ENV_MAPPINGS.items():
            value = environ.get(env_var)
            if value is None:
                continue

            try:
                result.set(config_key, convert(value))
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}") from exc

        return result._data


@dataclass
class RollupSettings:
    """Typed view over the rollup-related configuration.

    Attributes
    ----------
    db_path : Path
        SQLite database holding period summaries
    timezone : str
        Default owner timezone
    week_start_on : int
        First day of the week (0=Monday, 6=Sunday)
    throttle_interval : timedelta
        Minimum delay between two trigger invocations
    decrypt_workers : int
        Thread pool size for child decryption
    buffers : dict[str, timedelta]
        Maturation buffer per layer
    log_level : str
        Logging level
    log_dir : Path
        Directory for loguru sinks
    pipeline_log : Path | None
        Optional JSONL file for pipeline events
    """

    db_path: Path = Path("strata.db")
    timezone: str = "UTC"
    week_start_on: int = 0
    throttle_interval: timedelta = timedelta(minutes=5)
    decrypt_workers: int = 4
    buffers: dict[str, timedelta] = field(default_factory=dict)
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    pipeline_log: Path | None = None

    @classmethod
    def from_config(cls, config: Config) -> RollupSettings:
        """Build settings from a ``Config``.

        Raises
        ------
        ConfigError
            If any value is out of range
        """
        try:
            timezone_str = validate_timezone(str(config.get("rollup.timezone", "UTC")))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        week_start_on = int(config.get("rollup.week_start_on", 0))
        if not 0 <= week_start_on <= 6:
            raise ConfigError(f"rollup.week_start_on must be in 0..6, got {week_start_on}")

        throttle_minutes = float(config.get("rollup.throttle_minutes", 5))
        if throttle_minutes < 0:
            raise ConfigError("rollup.throttle_minutes must not be negative")

        decrypt_workers = int(config.get("rollup.decrypt_workers", 4))
        if decrypt_workers < 1:
            raise ConfigError("rollup.decrypt_workers must be at least 1")

        buffers: dict[str, timedelta] = {}
        for layer, days in (config.get("rollup.buffer_days") or {}).items():
            if float(days) < 0:
                raise ConfigError(f"rollup.buffer_days.{layer} must not be negative")
            buffers[layer] = timedelta(days=float(days))

        pipeline_log = config.get("logging.pipeline_log")

        return cls(
            db_path=Path(config.get("storage.db_path", "strata.db")),
            timezone=timezone_str,
            week_start_on=week_start_on,
            throttle_interval=timedelta(minutes=throttle_minutes),
            decrypt_workers=decrypt_workers,
            buffers=buffers,
            log_level=str(config.get("logging.level", "INFO")).upper(),
            log_dir=Path(config.get("logging.dir", "logs")),
            pipeline_log=Path(pipeline_log) if pipeline_log else None,
        )
