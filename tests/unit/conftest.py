"""Unit test configuration and shared fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from history_migrator.core.config import WorkflowOptions
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.types import DestinationEffect, EffectType, Revision

ORIGIN_LABEL = "GitOrigin-RevId"

# ---------------------------------------------------------------------------
# Shared helper factory
# ---------------------------------------------------------------------------


def _build_helper(
    options: WorkflowOptions | None = None,
    resolved_ref: str = "r5",
    origin: MagicMock | None = None,
    destination: MagicMock | None = None,
    console: MagicMock | None = None,
    **kwargs: Any,
) -> WorkflowRunHelper:
    """Build a WorkflowRunHelper over mocked collaborators.

    Comes pre-wired with:
    - origin resolving any reference to ``Revision(reference)``
    - origin supporting history
    - destination supporting previous refs, labelled ``GitOrigin-RevId``
    - destination last migrated revision ``r1``
    - destination writes returning one CREATED effect without errors
    - a non-interactive MagicMock console that confirms every prompt

    Keyword arguments are passed to ``WorkflowOptions`` when ``options`` is
    not given.
    """
    if origin is None:
        origin = MagicMock()
        origin.resolve.side_effect = Revision
        origin.supports_history.return_value = True
    if destination is None:
        destination = MagicMock()
        destination.label_name_when_origin = ORIGIN_LABEL
        destination.supports_previous_ref.return_value = True
        destination.get_last_migrated.return_value = "r1"
        destination.check_state.return_value = []
        destination.write.return_value = [
            DestinationEffect(EffectType.CREATED, "Created revision")
        ]
    if console is None:
        console = MagicMock()
        console.prompt_confirmation.return_value = True
        console.interactive = False
    return WorkflowRunHelper(
        options or WorkflowOptions(**kwargs),
        origin,
        destination,
        Revision(resolved_ref),
        console=console,
    )


@pytest.fixture()
def make_helper():
    """Factory fixture: call with kwargs to get a helper over mocks.

    Usage in tests::

        def test_something(make_helper):
            helper = make_helper(force=True)
            helper.origin_reader.changes.return_value = ...
    """
    return _build_helper
