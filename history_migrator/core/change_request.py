"""CHANGE_REQUEST and CHANGE_REQUEST_FROM_SOT.

Both modes migrate an origin change as a diff against a baseline that already
exists in the destination. They differ in how the baseline is found:

* CHANGE_REQUEST asks the origin for the closest ancestor carrying the
  destination's origin label.
* CHANGE_REQUEST_FROM_SOT walks candidate origin baselines and looks each
  one up in the destination, where submitted changes are recorded under the
  origin label.

An explicit baseline override short-circuits either search.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from history_migrator.constants import (
    CHANGE_REQUEST_FROM_SOT_LIMIT_FLAG,
    CHANGE_REQUEST_PARENT_FLAG,
)
from history_migrator.core.baseline import lookup_destination_baseline
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.exceptions import MigrationError, check_condition
from history_migrator.types import (
    Baseline,
    Change,
    ChangeBatch,
    Metadata,
    Revision,
    canonical_revision_id,
)
from history_migrator.utils.logging import log_with_context


def run_change_request(helper: WorkflowRunHelper) -> None:
    check_condition(
        helper.destination_supports_previous_ref(),
        "'%s' is incompatible with destinations that don't support history"
        " (For example folder destinations)",
        "CHANGE_REQUEST",
    )

    change_baseline = helper.workflow_options.change_baseline
    if change_baseline:
        baseline: Baseline | None = Baseline(change_baseline, origin_revision=None)
    else:
        baseline = helper.origin_reader.find_baseline(
            helper.resolved_ref, helper.origin_label_name
        )

    migrate_change_request(helper, baseline)


def run_change_request_from_sot(
    helper: WorkflowRunHelper, sleep: Callable[[float], None] = time.sleep
) -> None:
    options = helper.workflow_options
    if options.change_baseline:
        origin_baselines: list[Revision] = [
            helper.origin_resolve(options.change_baseline)
        ]
    else:
        # Tried strictly in the order the origin returns them
        origin_baselines = list(
            helper.origin_reader.find_baselines_without_label(
                helper.resolved_ref, options.change_request_from_sot_limit
            )
        )

    origin_baseline: Revision | None = None
    destination_baseline: str | None = None
    for candidate in origin_baselines:
        origin_baseline = candidate
        destination_baseline = lookup_destination_baseline(
            helper, canonical_revision_id(candidate.as_string()), sleep=sleep
        )
        if destination_baseline is not None:
            break

    if destination_baseline is None:
        raise MigrationError.validation(
            f"Couldn't find a change in the destination with "
            f"{helper.origin_label_name} label and "
            f"{origin_baseline.as_string() if origin_baseline else None} value. "
            "Make sure to sync the submitted changes from the origin -> "
            "destination first or use SQUASH mode or use "
            f"{CHANGE_REQUEST_FROM_SOT_LIMIT_FLAG}",
            retryable=True,
        )

    migrate_change_request(helper, Baseline(destination_baseline, origin_baseline))


def migrate_change_request(
    helper: WorkflowRunHelper, baseline: Baseline | None
) -> None:
    """Migrate the resolved change as one unit diffed against ``baseline``."""
    if baseline is None:
        raise MigrationError.validation(
            "Cannot find matching parent commit in the destination. Use "
            f"'{CHANGE_REQUEST_PARENT_FLAG}' flag to force a parent commit to "
            "use as baseline in the destination."
        )
    log_with_context(
        logging.INFO,
        f"Found baseline {baseline.baseline}",
        revision=helper.resolved_ref.as_string(),
    )

    changes: tuple[Change, ...]
    if baseline.origin_revision is None:
        # An operator-supplied baseline gives no origin history to enumerate
        changes = (helper.origin_reader.change(helper.resolved_ref),)
    else:
        response = helper.origin_reader.changes(
            baseline.origin_revision, helper.resolved_ref
        )
        if response.is_empty:
            raise MigrationError.empty_change(
                f"Change '{helper.resolved_ref.as_string()}' doesn't include any "
                f"change for origin_files = {helper.origin_files}"
            )
        changes = response.changes

    # The latest change provides the message and author
    last = changes[-1]
    helper.for_changes(changes).migrate(
        helper.resolved_ref,
        None,
        Metadata(last.message, last.author),
        ChangeBatch(current=changes, migrated=()),
        baseline,
        helper.resolved_ref,
    )
