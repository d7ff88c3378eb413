"""Unit tests for the SQUASH workflow mode."""

import pytest

from history_migrator.constants import GENERATED_IMPORT_MESSAGE
from history_migrator.core.config import OriginFilesConfig, WorkflowOptions
from history_migrator.core.squash import run_squash
from history_migrator.exceptions import ErrorKind, MigrationError
from history_migrator.types import (
    Author,
    ChangeBatch,
    ChangesResponse,
    EmptyReason,
    Metadata,
    Revision,
)


def _written(helper):
    """Return the positional arguments of the single destination write."""
    helper.destination_writer.write.assert_called_once()
    return helper.destination_writer.write.call_args[0]


class TestSquash:
    """Tests for run_squash()."""

    def test_migrates_pending_changes_oldest_first(self, make_helper, sample_changes):
        helper = make_helper()
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[1:]
        )

        run_squash(helper)

        helper.origin_reader.changes.assert_called_once_with(
            Revision("r1"), Revision("r5")
        )
        revision, metadata, batch, baseline, identity = _written(helper)
        assert revision == Revision("r5")
        assert batch == ChangeBatch(current=tuple(sample_changes[1:]), migrated=())
        assert [c.ref for c in batch.current] == ["r2", "r3", "r4", "r5"]
        assert baseline is None
        assert identity == Revision("r5")

    def test_uses_generated_message_and_default_author(
        self, make_helper, sample_changes
    ):
        helper = make_helper(default_author="Import Bot <bot@example.com>")
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[1:]
        )

        run_squash(helper)

        _, metadata, _, _, _ = _written(helper)
        assert metadata == Metadata(
            GENERATED_IMPORT_MESSAGE, Author("Import Bot", "bot@example.com")
        )

    def test_out_of_scope_changes_are_filtered(self, make_helper, make_change):
        a = make_change("r2", files=["src/a.py"])
        b = make_change("r3", files=["docs/b.md"])
        c = make_change("r4", files=["src/c.py"])
        helper = make_helper(
            options=WorkflowOptions(origin_files=OriginFilesConfig(include=["src/**"]))
        )
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            [a, b, c]
        )

        run_squash(helper)

        revision, _, batch, _, identity = _written(helper)
        # The last in-scope change replaces the requested ref as current
        assert revision == Revision("r4")
        assert batch.current == (a, c)
        assert identity == Revision("r5")

    def test_without_history_support_migrates_requested_ref(self, make_helper):
        helper = make_helper()
        helper.destination_writer.supports_previous_ref.return_value = False

        run_squash(helper)

        helper.destination_writer.get_last_migrated.assert_not_called()
        helper.origin_reader.changes.assert_not_called()
        revision, _, batch, _, _ = _written(helper)
        assert revision == Revision("r5")
        assert batch == ChangeBatch()

    def test_squash_without_history_sends_no_changes(
        self, make_helper, sample_changes
    ):
        helper = make_helper(squash_without_history=True)
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[1:4]
        )

        run_squash(helper)

        revision, _, batch, _, _ = _written(helper)
        assert revision == Revision("r4")
        assert batch.current == ()

    def test_no_changes_without_force_fails(self, make_helper):
        helper = make_helper()
        helper.origin_reader.changes.return_value = ChangesResponse.no_changes(
            EmptyReason.NO_CHANGES
        )

        with pytest.raises(MigrationError) as exc_info:
            run_squash(helper)

        assert exc_info.value.kind == ErrorKind.EMPTY_CHANGE
        helper.destination_writer.write.assert_not_called()

    def test_no_changes_with_force_migrates_anyway(self, make_helper):
        helper = make_helper(force=True)
        helper.origin_reader.changes.return_value = ChangesResponse.no_changes(
            EmptyReason.NO_CHANGES
        )

        run_squash(helper)

        helper.console.warn.assert_called_once()
        revision, _, batch, _, _ = _written(helper)
        assert revision == Revision("r5")
        assert batch.current == ()

    def test_unknown_last_rev_with_force_migrates_from_scratch(
        self, make_helper, sample_changes
    ):
        helper = make_helper(force=True)
        helper.destination_writer.get_last_migrated.return_value = None
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes
        )

        run_squash(helper)

        helper.origin_reader.changes.assert_called_once_with(None, Revision("r5"))
        assert len(_written(helper)[2].current) == 5

    def test_last_rev_state_checked_before_write(self, make_helper, sample_changes):
        helper = make_helper(check_last_rev_state=True)
        helper.destination_writer.check_state.return_value = ["out of sync"]
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[1:]
        )

        with pytest.raises(MigrationError, match="out of sync"):
            run_squash(helper)
        helper.destination_writer.write.assert_not_called()
