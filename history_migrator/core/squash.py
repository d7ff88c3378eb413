"""SQUASH: collapse every pending origin change into one migration unit."""

from __future__ import annotations

import logging

from history_migrator.constants import GENERATED_IMPORT_MESSAGE
from history_migrator.core.empty_changes import (
    is_history_supported,
    manage_no_changes_for_squash,
    maybe_get_last_rev,
)
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.types import Change, ChangeBatch, Metadata, Revision
from history_migrator.utils.logging import log_with_context


def run_squash(helper: WorkflowRunHelper) -> None:
    detected: tuple[Change, ...] = ()
    current: Revision = helper.resolved_ref
    last_rev: Revision | None = None

    if is_history_supported(helper):
        last_rev = maybe_get_last_rev(helper)
        response = helper.get_changes(last_rev, current)
        if response.is_empty:
            manage_no_changes_for_squash(
                helper, current, last_rev, response.empty_reason
            )
        else:
            detected = response.changes

    # SQUASH always uses the default author
    metadata = Metadata(GENERATED_IMPORT_MESSAGE, helper.default_author)

    helper.maybe_validate_repo_in_last_rev_state(metadata)

    # origin_files can differ for the scoped helper, so it must do the filtering
    helper_for_changes = helper.for_changes(detected)
    detected = tuple(c for c in detected if not helper_for_changes.skip_change(c))

    # Prefer the last change that touched origin_files over the requested ref
    if detected:
        current = detected[-1].revision

    if helper.is_squash_without_history:
        detected = ()

    log_with_context(
        logging.INFO,
        f"Squashing {len(detected)} change(s) up to {current.as_string()}",
        mode="SQUASH",
        revision=current.as_string(),
    )

    # Origin responses are already oldest first, the order history
    # formatting downstream expects
    helper_for_changes.migrate(
        current,
        last_rev,
        metadata,
        ChangeBatch(current=detected, migrated=()),
        None,
        helper.resolved_ref,
    )
