"""Loguru configuration with structured sinks and operation timing.

- Colored console output
- Structured JSON log file with per-component files
- Context manager for timing operations with a trace_id
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "timing_context",
]

COMPONENTS = ("rollup", "storage", "generation")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "10 days",
    enable_console: bool = True,
    enable_files: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for log files (default: logs/)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "50 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days")
    enable_console
        Enable console output
    enable_files
        Enable JSONL file sinks

    Example
    -------
    >>> configure_loguru(log_dir=Path("logs"), level="DEBUG")
    """
    logger.remove()
    logger.configure(extra={"component": "strata"})

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
        )

    if not enable_files:
        return

    log_dir = log_dir or Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "strata.jsonl",
        level=level,
        rotation=rotation,
        retention=retention,
        serialize=True,
        enqueue=True,
    )

    for component in COMPONENTS:
        logger.add(
            log_dir / f"{component}.jsonl",
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=True,
            enqueue=True,
            filter=lambda record, comp=component: record["extra"].get("component") == comp,
        )

    logger.bind(component="strata").info("Loguru configured", log_dir=str(log_dir), level=level)


def get_logger(component: str = "strata") -> Any:
    """Get logger bound to a component (rollup, storage, generation)."""
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "strata",
    trace_id: str | None = None,
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Time an operation and log its duration on exit.

    The yielded dict can be updated with extra fields for the end record.

    Example
    -------
    >>> with timing_context("decrypt_children", component="rollup", trace_id="abc") as ctx:
    ...     ctx["children"] = 5
    """
    start = time.perf_counter()
    context: dict[str, Any] = {}
    bound = logger.bind(component=component, operation=operation, trace_id=trace_id)

    bound.debug(f"START: {operation}", phase="start", **metadata)
    try:
        yield context
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        context["duration_ms"] = duration_ms
        bound.debug(f"END: {operation}", phase="end", **{**metadata, **context})
