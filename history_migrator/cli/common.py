"""Click plumbing shared by the subcommands: the group, shared options and error reporting."""

from __future__ import annotations

import logging
from typing import Callable, ClassVar

import click

import history_migrator
from history_migrator.constants import EXIT_FAILURE, EXIT_NO_CHANGES
from history_migrator.exceptions import (
    ConfigError,
    ErrorKind,
    MigrationError,
    MigratorError,
)
from history_migrator.utils.logging import log_with_context

# ---------------------------------------------------------------------------
# Command group
# ---------------------------------------------------------------------------


class DefaultGroup(click.Group):
    """Group that runs ``default_command`` when invoked with options only.

    ``history-migrator --history h.yaml --mode ITERATIVE`` is read as
    ``history-migrator migrate --history h.yaml --mode ITERATIVE``.
    """

    default_command: ClassVar[str] = "migrate"

    # Options handled by the group itself
    own_options: ClassVar[frozenset[str]] = frozenset({"-h", "--help", "--version"})

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0].startswith("-") and args[0] not in self.own_options:
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Attach ``--config`` and ``--verbose`` to a subcommand.

    Args:
        f: The command callback.

    Returns:
        The callback with both options applied.
    """
    f = click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Workflow options YAML file",
    )(f)
    return click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Log DEBUG messages and record context to the console",
    )(f)


@click.group(
    cls=DefaultGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(
    version=history_migrator.__version__, prog_name="history-migrator"
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Migrate change history from an origin to a destination repository."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> int:
    """Report a failed run and pick the process exit code.

    Args:
        e: What stopped the run.

    Returns:
        ``EXIT_NO_CHANGES`` when there was nothing to migrate, otherwise
        ``EXIT_FAILURE``.
    """
    if isinstance(e, MigrationError):
        if e.kind == ErrorKind.EMPTY_CHANGE:
            log_with_context(logging.WARNING, f"Nothing to migrate: {e}")
            return EXIT_NO_CHANGES
        if e.kind == ErrorKind.REJECTED:
            log_with_context(logging.WARNING, f"Migration aborted: {e}")
            return EXIT_FAILURE
        label = "Validation error" if e.is_validation else "Repository error"
        log_with_context(logging.ERROR, f"{label}: {e}")
        if e.retryable:
            log_with_context(
                logging.INFO,
                "This error may go away on its own. Please try again later.",
            )
        return EXIT_FAILURE
    if isinstance(e, ConfigError):
        log_with_context(logging.ERROR, f"Configuration error: {e}")
        return EXIT_FAILURE
    if isinstance(e, MigratorError):
        log_with_context(logging.ERROR, f"Migration error: {e}")
        return EXIT_FAILURE
    if isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"Missing file: {e}")
        return EXIT_FAILURE
    if isinstance(e, KeyboardInterrupt):
        log_with_context(
            logging.WARNING,
            "Interrupted. Changes already migrated stay in the destination; "
            "run again to pick up the rest.",
        )
        return EXIT_FAILURE
    log_with_context(logging.ERROR, f"Migration failed: {e}", exc_info=True)
    return EXIT_FAILURE
