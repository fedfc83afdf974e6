"""Main CLI module for Strata."""

import sys

import click

from .strata_rollup import cli as rollup_cli

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  strata rollup status --owner alice                 # Where each layer stands
  strata rollup status --owner alice --tz Europe/Paris --now 2024-01-20T00:00:00Z
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="Strata - hierarchical summary rollups",
    epilog=EPILOG,
)
def cli() -> None:
    """Root CLI command."""


cli.add_command(rollup_cli, "rollup")


def main() -> None:
    cli()


if __name__ == "__main__":
    sys.exit(main())
