"""Operator console used by the workflow modes for warnings and prompts."""

from __future__ import annotations

import logging

import click

from history_migrator.utils.logging import log_with_context


class LogConsole:
    """Console that reports through the tool logger and prompts with click.

    Args:
        assume_yes: Answer every confirmation prompt with yes.
        interactive: False when no operator is attached; prompts then
            answer no.
    """

    def __init__(self, assume_yes: bool = False, interactive: bool = True) -> None:
        self.assume_yes = assume_yes
        self.interactive = interactive

    def info(self, message: str) -> None:
        log_with_context(logging.INFO, message)

    def warn(self, message: str) -> None:
        log_with_context(logging.WARNING, message)

    def error(self, message: str) -> None:
        log_with_context(logging.ERROR, message)

    def prompt_confirmation(self, message: str) -> bool:
        if self.assume_yes:
            log_with_context(logging.INFO, f"{message} [assumed yes]")
            return True
        if not self.interactive:
            log_with_context(logging.WARNING, f"{message} [no operator, assuming no]")
            return False
        return click.confirm(message, default=False)


class PrefixConsole:
    """Console that prefixes every message, e.g. ``"Change 2 of 5 (abc): "``.

    Prompts are not prefixed so they stand out from the per-change output.
    """

    def __init__(self, prefix: str, delegate) -> None:
        self.prefix = prefix
        self.delegate = delegate

    @property
    def interactive(self) -> bool:
        return getattr(self.delegate, "interactive", False)

    def info(self, message: str) -> None:
        self.delegate.info(self.prefix + message)

    def warn(self, message: str) -> None:
        self.delegate.warn(self.prefix + message)

    def error(self, message: str) -> None:
        self.delegate.error(self.prefix + message)

    def prompt_confirmation(self, message: str) -> bool:
        return self.delegate.prompt_confirmation(message)
