"""Destination baseline lookup used by CHANGE_REQUEST_FROM_SOT.

Finds the destination change whose origin label records a given origin
revision. Submitted changes can take a while to reach the destination, so
the lookup is retried over the configured delays.
"""

from __future__ import annotations

import time
from typing import Callable

from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.exceptions import MigrationError
from history_migrator.types import Change, Labels, canonical_revision_id


def lookup_destination_baseline_once(
    helper: WorkflowRunHelper, origin_revision: str
) -> str | None:
    """Return the revision of the most recent destination change labelled
    with ``origin_revision``, or None."""

    def visitor(change: Change, matched_labels: Labels) -> str | None:
        for _, value in matched_labels:
            if canonical_revision_id(value) == origin_revision:
                return change.revision.as_string()
        return None

    return helper.destination_writer.visit_changes_with_any_label(
        None, [helper.origin_label_name], visitor
    )


def lookup_destination_baseline(
    helper: WorkflowRunHelper,
    origin_revision: str,
    sleep: Callable[[float], None] = time.sleep,
) -> str | None:
    """Look up a destination baseline, retrying after each configured delay.

    Returns None once every delay has been used without a match.

    Raises:
        MigrationError: ``REPOSITORY`` if interrupted while waiting.
    """
    result = lookup_destination_baseline_once(helper, origin_revision)
    if result is not None:
        return result

    for delay in helper.workflow_options.change_request_from_sot_retry:
        helper.console.warn(
            f"Couldn't find a change in the destination with "
            f"{helper.origin_label_name} label and {origin_revision} value. "
            f"Retrying in {delay} seconds..."
        )
        try:
            sleep(delay)
        except (KeyboardInterrupt, InterruptedError) as e:
            raise MigrationError.repository(
                "Interrupted while waiting for CHANGE_REQUEST_FROM_SOT "
                "destination baseline to be available"
            ) from e
        result = lookup_destination_baseline_once(helper, origin_revision)
        if result is not None:
            return result
    return None
