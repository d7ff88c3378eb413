"""CLI entry point. Importing the command modules registers them on the group."""

from __future__ import annotations

import history_migrator.cli.config_cmd  # noqa: F401
import history_migrator.cli.migrate_cmd  # noqa: F401
from history_migrator.cli.common import cli, handle_exception

__all__ = ["cli", "handle_exception", "main"]


def main() -> None:
    """Main entry point for the history migration tool."""
    cli()


if __name__ == "__main__":
    main()
