"""CLI command handlers for configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from history_migrator.cli.common import cli
from history_migrator.core.config import create_default_config
from history_migrator.core.workflow_mode import WorkflowMode
from history_migrator.utils.logging import setup_logger


@cli.command("init-config")
@click.option(
    "--config",
    default="config.yaml",
    show_default=True,
    help="Where to write the default config YAML",
)
def init_config(config: str) -> None:
    """Write a default configuration file (never overwrites)."""
    setup_logger()
    if not create_default_config(Path(config)):
        sys.exit(1)
    click.echo(f"Wrote default configuration to {config}")


@cli.command()
def modes() -> None:
    """List the available workflow modes."""
    for mode in WorkflowMode:
        click.echo(f"{mode.value}: {mode.description}")
