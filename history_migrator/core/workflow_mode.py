"""Workflow modes: the closed set of ways to move origin changes to a destination."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from history_migrator.core.change_request import (
    run_change_request,
    run_change_request_from_sot,
)
from history_migrator.core.config import normalize_mode_name
from history_migrator.core.iterative import run_iterative
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.core.squash import run_squash


class WorkflowMode(str, Enum):
    """How origin changes are grouped into destination migration units."""

    SQUASH = "SQUASH"
    ITERATIVE = "ITERATIVE"
    CHANGE_REQUEST = "CHANGE_REQUEST"
    CHANGE_REQUEST_FROM_SOT = "CHANGE_REQUEST_FROM_SOT"

    @classmethod
    def from_name(cls, name: str) -> WorkflowMode:
        """Parse a mode name case-insensitively.

        Raises:
            ConfigError: If ``name`` is not a known mode.
        """
        return cls(normalize_mode_name(name))

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    def run(self, helper: WorkflowRunHelper) -> None:
        _RUNNERS[self](helper)


_RUNNERS: dict[WorkflowMode, Callable[[WorkflowRunHelper], None]] = {
    WorkflowMode.SQUASH: run_squash,
    WorkflowMode.ITERATIVE: run_iterative,
    WorkflowMode.CHANGE_REQUEST: run_change_request,
    WorkflowMode.CHANGE_REQUEST_FROM_SOT: run_change_request_from_sot,
}

_DESCRIPTIONS: dict[WorkflowMode, str] = {
    WorkflowMode.SQUASH: "Create a single commit in the destination with new tree state.",
    WorkflowMode.ITERATIVE: "Import each origin change individually.",
    WorkflowMode.CHANGE_REQUEST: (
        "Import an origin tree state diffed by a common parent in destination. "
        "This could be a GitHub Pull Request, a Gerrit Change, etc."
    ),
    WorkflowMode.CHANGE_REQUEST_FROM_SOT: (
        "Import from the Source-of-Truth. Useful when, despite the pending change "
        "being already in the SoT, the users want to review the code on a "
        "different system."
    ),
}
