"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path

import click

from history_migrator.cli.common import cli, common_options, handle_exception
from history_migrator.connectors.memory import InMemoryDestination, load_history
from history_migrator.constants import LAST_REV_FLAG
from history_migrator.core.config import WorkflowOptions, load_config
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.core.scope import PathScope
from history_migrator.core.workflow_mode import WorkflowMode
from history_migrator.utils.console import LogConsole
from history_migrator.utils.logging import log_with_context, setup_logger
from history_migrator.utils.profiler import Profiler

# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--history",
    "history_path",
    required=True,
    help="Path to the YAML file describing origin and destination history",
)
@click.option("--mode", default=None, help="Workflow mode (overrides config)")
@click.option("--ref", default=None, help="Origin reference to migrate")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Migrate even when there are no new changes or history is unrelated",
)
@click.option(
    "--change_request_parent",
    default=None,
    help="Destination revision to use as baseline for change request modes",
)
@click.option(
    "--iterative_limit_changes",
    type=int,
    default=None,
    help="Import at most this many changes in ITERATIVE mode",
)
@click.option(
    "--change_request_from_sot_limit",
    type=int,
    default=None,
    help="Number of origin baselines to try in CHANGE_REQUEST_FROM_SOT mode",
)
@click.option(
    LAST_REV_FLAG,
    "last_rev",
    default=None,
    help="Last migrated origin revision (instead of reading the destination)",
)
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every prompt.")
@click.option("--output_dir", default=None, help="Directory for the run log file")
@click.option("--json_logs", is_flag=True, help="Write the run log file as JSON")
def migrate(
    config: str,
    verbose: bool,
    history_path: str,
    mode: str | None,
    ref: str | None,
    force: bool,
    change_request_parent: str | None,
    iterative_limit_changes: int | None,
    change_request_from_sot_limit: int | None,
    last_rev: str | None,
    yes: bool,
    output_dir: str | None,
    json_logs: bool,
) -> None:
    """Run one workflow mode against the history described in a YAML file.

    Args:
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        history_path: YAML file describing the origin and destination.
        mode: Workflow mode overriding the configured one.
        ref: Origin reference to migrate.
        force: Enable the force override.
        change_request_parent: Explicit baseline for change request modes.
        iterative_limit_changes: Limit for ITERATIVE mode.
        change_request_from_sot_limit: Candidate limit for CHANGE_REQUEST_FROM_SOT.
        last_rev: Last migrated origin revision.
        yes: Answer yes to every prompt.
        output_dir: Directory for the run log file.
        json_logs: Write the run log file as JSON.
    """
    setup_logger(verbose, output_dir, json_logs)

    try:
        options = build_options(
            load_config(Path(config)),
            mode=mode,
            force=force,
            change_request_parent=change_request_parent,
            iterative_limit_changes=iterative_limit_changes,
            change_request_from_sot_limit=change_request_from_sot_limit,
        )
        workflow_mode = WorkflowMode.from_name(options.mode)
        history = load_history(Path(history_path), PathScope(options.origin_files))

        log_startup_info(options, history_path, ref or history.ref)

        profiler = Profiler()
        helper = WorkflowRunHelper(
            options,
            history.origin,
            history.destination,
            history.origin.resolve(ref or history.ref),
            console=LogConsole(assume_yes=yes, interactive=sys.stdin.isatty()),
            profiler=profiler,
            last_rev_override=last_rev,
        )
        try:
            workflow_mode.run(helper)
        finally:
            profiler.report()
    except (Exception, KeyboardInterrupt) as e:
        sys.exit(handle_exception(e))

    report_results(history.destination)


def build_options(
    options: WorkflowOptions,
    mode: str | None = None,
    force: bool = False,
    change_request_parent: str | None = None,
    iterative_limit_changes: int | None = None,
    change_request_from_sot_limit: int | None = None,
) -> WorkflowOptions:
    """Apply command line overrides on top of the loaded configuration."""
    overrides: dict[str, object] = {}
    if mode is not None:
        overrides["mode"] = mode
    if force:
        overrides["force"] = True
    if change_request_parent is not None:
        overrides["change_baseline"] = change_request_parent
    if iterative_limit_changes is not None:
        overrides["iterative_limit_changes"] = iterative_limit_changes
    if change_request_from_sot_limit is not None:
        overrides["change_request_from_sot_limit"] = change_request_from_sot_limit
    if not overrides:
        return options
    # replace() re-runs validation in __post_init__
    return dataclasses.replace(options, **overrides)


def log_startup_info(options: WorkflowOptions, history_path: str, ref: str) -> None:
    """Log startup information."""
    log_with_context(logging.INFO, "Starting migration with the following parameters:")
    log_with_context(logging.INFO, f"- History: {history_path}")
    log_with_context(logging.INFO, f"- Mode: {options.mode}")
    log_with_context(logging.INFO, f"- Reference: {ref}")
    log_with_context(logging.INFO, f"- Force: {options.force}")
    if options.change_baseline:
        log_with_context(logging.INFO, f"- Baseline: {options.change_baseline}")


def report_results(destination: InMemoryDestination) -> None:
    """Print the destination changes and reviews created by the run."""
    if not destination.created:
        click.echo("No destination changes were created.")
        return
    click.echo(f"Created {len(destination.created)} destination change(s):")
    for change in destination.created:
        origin = ", ".join(
            v for k, v in change.labels if k == destination.label_name_when_origin
        )
        click.echo(
            f"  {change.revision.as_string()}  {change.first_line}  (origin: {origin})"
        )
