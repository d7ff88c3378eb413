"""Handling of empty change sets and of the last migrated revision.

Only SQUASH tolerates these conditions under the force flag; the other modes
treat them as failures on their own terms.
"""

from __future__ import annotations

from history_migrator.constants import FORCE_FLAG
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.exceptions import ErrorKind, MigrationError, check_condition
from history_migrator.types import EmptyReason, Revision


def is_history_supported(helper: WorkflowRunHelper) -> bool:
    return (
        helper.destination_supports_previous_ref()
        and helper.origin_reader.supports_history()
    )


def manage_no_changes_for_squash(
    helper: WorkflowRunHelper,
    current: Revision,
    last_rev: Revision | None,
    reason: EmptyReason,
) -> None:
    """Fail, or warn and carry on under force, when SQUASH finds no changes.

    Raises:
        MigrationError: ``EMPTY_CHANGE`` for NO_CHANGES and TO_IS_ANCESTOR,
            ``VALIDATION`` for UNRELATED_REVISIONS, unless force is set.
    """
    console = helper.console
    if reason == EmptyReason.NO_CHANGES:
        since = f" from {last_rev.as_string()}" if last_rev is not None else ""
        no_changes_msg = (
            f"No changes{since} up to {current.as_string()} match any origin_files"
        )
        if not helper.is_force:
            raise MigrationError.empty_change(
                f"{no_changes_msg}. Use {FORCE_FLAG} if you really want to run "
                "the migration anyway."
            )
        console.warn(f"{no_changes_msg}. Migrating anyway because of {FORCE_FLAG}")

    elif reason == EmptyReason.TO_IS_ANCESTOR:
        if not helper.is_force:
            raise MigrationError.empty_change(
                f"'{current.as_string()}' has been already migrated. Use "
                f"{FORCE_FLAG} if you really want to run the migration again "
                "(For example if the configuration has changed)."
            )
        migrated = last_rev if last_rev is not None else current
        console.warn(
            f"'{migrated.as_string()}' has been already migrated. Migrating anyway "
            f"because of {FORCE_FLAG}"
        )

    elif reason == EmptyReason.UNRELATED_REVISIONS:
        check_condition(
            helper.is_force,
            "Last imported revision '%s' is not an ancestor of the revision "
            "currently being migrated ('%s'). Use %s if you really want to "
            "migrate the reference.",
            last_rev,
            current.as_string(),
            FORCE_FLAG,
        )
        console.warn(
            f"Last imported revision '{last_rev}' is not an ancestor of the "
            f"revision currently being migrated ('{current.as_string()}')"
        )


def maybe_get_last_rev(helper: WorkflowRunHelper) -> Revision | None:
    """Return the last migrated revision, or None under force if unknown.

    Raises:
        MigrationError: ``VALIDATION`` naming the force flag when the revision
            cannot be determined and force is unset. Other failures propagate
            unchanged.
    """
    try:
        return helper.get_last_rev()
    except MigrationError as e:
        if e.kind != ErrorKind.UNRESOLVED_REVISION:
            raise
        if not helper.is_force:
            raise MigrationError.validation(
                f"Cannot find last imported revision. Use {FORCE_FLAG} if you "
                f"really want to proceed with the migration: {e}"
            ) from e
        helper.console.warn(
            f"Cannot find last imported revision, but proceeding because of "
            f"{FORCE_FLAG} flag"
        )
        return None
