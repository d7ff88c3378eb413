"""ITERATIVE: migrate each pending origin change as its own migration unit.

Changes are migrated one by one and each success stays in the destination.
A failure aborts the remaining changes without rolling back earlier ones;
when a change reports destination errors the operator decides whether to go
on.
"""

from __future__ import annotations

import logging

from tqdm import tqdm

from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.exceptions import ErrorKind, MigrationError, check_condition
from history_migrator.types import (
    Change,
    ChangeBatch,
    EffectType,
    EmptyReason,
    Metadata,
)
from history_migrator.utils.console import PrefixConsole
from history_migrator.utils.logging import log_with_context


def run_iterative(helper: WorkflowRunHelper) -> None:
    # No force override: without a last revision there is nothing to iterate from
    last_rev = helper.get_last_rev()
    resolved_ref = helper.resolved_ref

    response = helper.get_changes(last_rev, resolved_ref)
    if response.is_empty:
        check_condition(
            response.empty_reason != EmptyReason.UNRELATED_REVISIONS,
            "last imported revision %s is not ancestor of requested revision %s",
            last_rev,
            resolved_ref,
        )
        raise MigrationError.empty_change(
            f"No new changes to import for resolved ref: {resolved_ref.as_string()}"
        )

    changes = response.changes
    limit = len(changes)
    if helper.workflow_options.iterative_limit_changes < limit:
        limit = helper.workflow_options.iterative_limit_changes
        helper.console.info(
            f"Importing first {limit} change(s) out of {len(changes)}"
        )

    helper.maybe_validate_repo_in_last_rev_state(None)

    # Most recent first; prepending builds a new tuple so batches handed to
    # earlier migrations are never mutated
    migrated: tuple[Change, ...] = ()
    migrated_count = 0
    change_number = 1

    pbar = tqdm(
        total=limit,
        desc=f"Migrating changes up to {resolved_ref.as_string()}",
        unit="change",
        disable=limit < 2 or not getattr(helper.console, "interactive", False),
    )
    try:
        for index, change in enumerate(changes):
            if migrated_count >= limit:
                break

            revision = change.revision.as_string()
            prefix = f"Change {change_number} of {limit} ({revision}): "
            errors = False

            with helper.profiler.start(change.ref):
                current_helper = helper.for_changes([change])
                if current_helper.skip_change(change):
                    continue
                try:
                    effects = current_helper.migrate(
                        change.revision,
                        last_rev,
                        Metadata(change.message, change.author),
                        ChangeBatch(current=(change,), migrated=migrated),
                        None,
                        # Each change keeps its own identity in the destination
                        change.revision,
                        console=PrefixConsole(prefix, helper.console),
                    )
                    migrated_count += 1
                    pbar.update(1)
                    errors = any(
                        effect.has_errors
                        for effect in effects
                        if effect.type != EffectType.NOOP
                    )
                except MigrationError as e:
                    if e.kind != ErrorKind.EMPTY_CHANGE:
                        helper.console.error(
                            f"Migration of origin revision '{revision}' failed "
                            f"with error: {e}"
                        )
                        raise
                    helper.console.warn(
                        f"Migration of origin revision '{revision}' resulted in an "
                        f"empty change in the destination: {e}"
                    )
                except Exception as e:
                    helper.console.error(
                        f"Migration of origin revision '{revision}' failed "
                        f"with error: {e}"
                    )
                    raise

            migrated = (change,) + migrated

            if errors and index < len(changes) - 1:
                if not helper.console.prompt_confirmation(
                    "Continue importing next change?"
                ):
                    message = f"Iterative workflow aborted by user after: {prefix}"
                    helper.console.warn(message)
                    raise MigrationError.rejected(message)
            change_number += 1
    finally:
        pbar.close()

    if migrated_count == 0:
        raise MigrationError.empty_change(
            "Iterative workflow produced no changes in the destination for "
            f"resolved ref: {resolved_ref.as_string()}"
        )

    log_with_context(
        logging.INFO,
        f"Imported {migrated_count} change(s) out of {len(changes)}",
        mode="ITERATIVE",
        revision=resolved_ref.as_string(),
    )
