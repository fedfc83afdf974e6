"""CLI commands for inspecting the rollup hierarchy."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import click

from ..core.config import Config, ConfigError, RollupSettings
from ..core.time import format_utc_iso8601, get_current_utc, parse_utc_iso8601, validate_timezone
from ..observability.loguru_config import configure_loguru
from ..rollups.contracts import RollupError
from ..rollups.gaps import find_gap, next_gap_key
from ..rollups.grouping import group_children
from ..rollups.layers import ROLLUP_LAYERS, get_layer_policy
from ..rollups.maturation import closes_at
from ..rollups.time_windows import window_for
from ..storage.summary_store import SummaryStore

__all__ = ["cli", "layer_status"]


def layer_status(
    store: SummaryStore,
    owner_id: str,
    layer: str,
    timezone_str: str,
    now: datetime,
    settings: RollupSettings,
) -> dict[str, Any]:
    """Describe where ``layer`` stands for ``owner_id``.

    ``state`` is one of ``ready`` (a pass would create a summary), ``waiting``
    (next period has data but is not closed), ``stalled`` (next period has no
    child data) or ``empty`` (no child data at all).
    """
    policy = get_layer_policy(layer, buffers=settings.buffers, week_start_on=settings.week_start_on)
    parents = store.list_summaries(owner_id, layer)
    children = store.list_summaries(owner_id, policy.child_layer)
    grouped = group_children(children, layer, timezone_str, week_start_on=policy.week_start_on)

    status: dict[str, Any] = {
        "layer": layer,
        "summaries": len(parents),
        "latest": parents[-1].period_start.isoformat() if parents else None,
        "next_period": None,
        "state": "empty",
    }

    key = next_gap_key(parents, grouped, policy, timezone_str)
    if key is None:
        return status

    period = window_for(key, layer, timezone_str, week_start_on=policy.week_start_on)
    status["next_period"] = f"{period.start.isoformat()}..{period.end.isoformat()}"

    if key not in grouped:
        status["state"] = "stalled"
    elif find_gap(parents, grouped, policy, now, timezone_str) is not None:
        status["state"] = "ready"
    else:
        status["state"] = "waiting"
        status["closes_at"] = format_utc_iso8601(closes_at(period, policy.buffer))

    return status


@click.group(help="Inspect hierarchical summary rollups")
def cli() -> None:
    """Rollup command group."""


@cli.command("status")
@click.option("--owner", "owner_id", required=True, help="Owner whose summaries to inspect")
@click.option("--db", "db_path", type=click.Path(path_type=Path), help="SQLite database (default: from config)")
@click.option("--tz", "timezone_str", help="Owner timezone (default: from config)")
@click.option("--now", "now_str", help="Evaluate as of this ISO-8601 instant (default: now)")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to strata.yaml")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr and JSONL files in the log directory")
@click.pass_context
def status_command(
    ctx: click.Context,
    owner_id: str,
    db_path: Path | None,
    timezone_str: str | None,
    now_str: str | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Show summary counts and the next pending period per layer."""
    try:
        settings = RollupSettings.from_config(Config.load(config_path))
        timezone_str = validate_timezone(timezone_str or settings.timezone)
        now = parse_utc_iso8601(now_str) if now_str else get_current_utc()
    except (ConfigError, ValueError) as exc:
        click.echo(f"❌ {exc}", err=True)
        ctx.exit(2)

    configure_loguru(
        log_dir=settings.log_dir,
        level="DEBUG" if verbose else settings.log_level,
        enable_console=verbose,
        enable_files=verbose,
    )

    db_path = db_path or settings.db_path
    if not db_path.exists():
        click.echo(f"❌ Database not found: {db_path}", err=True)
        ctx.exit(1)

    try:
        with SummaryStore(db_path) as store:
            rows = [
                layer_status(store, owner_id, layer, timezone_str, now, settings)
                for layer in ROLLUP_LAYERS
            ]
    except RollupError as exc:
        click.echo(f"❌ {exc}", err=True)
        ctx.exit(1)

    click.echo(f"Owner {owner_id} ({timezone_str}) as of {format_utc_iso8601(now)}")
    for row in rows:
        line = f"  {row['layer']:<8} summaries={row['summaries']:<4} latest={row['latest'] or '-'}"
        if row["next_period"]:
            line += f"  next={row['next_period']} [{row['state']}]"
        else:
            line += f"  [{row['state']}]"
        if row.get("closes_at"):
            line += f" closes {row['closes_at']}"
        click.echo(line)
