"""Unit tests for the CHANGE_REQUEST and CHANGE_REQUEST_FROM_SOT modes."""

from unittest.mock import patch

import pytest

from history_migrator.constants import (
    CHANGE_REQUEST_FROM_SOT_LIMIT_FLAG,
    CHANGE_REQUEST_PARENT_FLAG,
)
from history_migrator.core.change_request import (
    migrate_change_request,
    run_change_request,
    run_change_request_from_sot,
)
from history_migrator.exceptions import ErrorKind, MigrationError
from history_migrator.types import (
    Baseline,
    ChangeBatch,
    ChangesResponse,
    EmptyReason,
    Metadata,
    Revision,
)

ORIGIN_LABEL = "GitOrigin-RevId"

_LOOKUP = "history_migrator.core.change_request.lookup_destination_baseline"


def _written(helper):
    helper.destination_writer.write.assert_called_once()
    return helper.destination_writer.write.call_args[0]


def _no_sleep(_):
    pass


# ---------------------------------------------------------------------------
# CHANGE_REQUEST
# ---------------------------------------------------------------------------


class TestChangeRequest:
    """Tests for run_change_request()."""

    def test_migrates_changes_since_origin_baseline(
        self, make_helper, sample_changes
    ):
        helper = make_helper()
        baseline = Baseline("d2", Revision("r2"))
        helper.origin_reader.find_baseline.return_value = baseline
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[2:]
        )

        run_change_request(helper)

        helper.origin_reader.find_baseline.assert_called_once_with(
            Revision("r5"), ORIGIN_LABEL
        )
        helper.origin_reader.changes.assert_called_once_with(
            Revision("r2"), Revision("r5")
        )
        revision, metadata, batch, written_baseline, identity = _written(helper)
        last = sample_changes[-1]
        assert revision == Revision("r5")
        assert metadata == Metadata(last.message, last.author)
        assert batch == ChangeBatch(current=tuple(sample_changes[2:]))
        assert written_baseline == baseline
        assert identity == Revision("r5")

    def test_explicit_parent_skips_baseline_search(
        self, make_helper, sample_changes
    ):
        helper = make_helper(change_baseline="d7")
        helper.origin_reader.change.return_value = sample_changes[-1]

        run_change_request(helper)

        helper.origin_reader.find_baseline.assert_not_called()
        helper.origin_reader.changes.assert_not_called()
        helper.origin_reader.change.assert_called_once_with(Revision("r5"))
        _, _, batch, baseline, _ = _written(helper)
        assert baseline == Baseline("d7", None)
        assert batch.current == (sample_changes[-1],)

    def test_requires_destination_history(self, make_helper):
        helper = make_helper()
        helper.destination_writer.supports_previous_ref.return_value = False

        with pytest.raises(MigrationError, match="CHANGE_REQUEST") as exc_info:
            run_change_request(helper)

        assert exc_info.value.kind == ErrorKind.VALIDATION
        helper.origin_reader.find_baseline.assert_not_called()

    def test_missing_baseline_suggests_parent_flag(self, make_helper):
        helper = make_helper()
        helper.origin_reader.find_baseline.return_value = None

        with pytest.raises(MigrationError) as exc_info:
            run_change_request(helper)

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert CHANGE_REQUEST_PARENT_FLAG in str(exc_info.value)
        helper.destination_writer.write.assert_not_called()


class TestMigrateChangeRequest:
    """Tests for migrate_change_request()."""

    def test_empty_range_is_empty_change(self, make_helper):
        helper = make_helper()
        helper.origin_reader.changes.return_value = ChangesResponse.no_changes(
            EmptyReason.NO_CHANGES
        )

        with pytest.raises(MigrationError, match="origin_files") as exc_info:
            migrate_change_request(helper, Baseline("d1", Revision("r1")))

        assert exc_info.value.kind == ErrorKind.EMPTY_CHANGE

    def test_metadata_comes_from_latest_change(self, make_helper, make_change):
        older = make_change("r4", message="Older\n")
        latest = make_change("r5", message="Latest\n")
        helper = make_helper()
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            [older, latest]
        )

        migrate_change_request(helper, Baseline("d1", Revision("r3")))

        assert _written(helper)[1].message == "Latest\n"


# ---------------------------------------------------------------------------
# CHANGE_REQUEST_FROM_SOT
# ---------------------------------------------------------------------------


class TestChangeRequestFromSot:
    """Tests for run_change_request_from_sot()."""

    def test_first_candidate_found_in_destination_wins(
        self, make_helper, sample_changes
    ):
        helper = make_helper()
        helper.origin_reader.find_baselines_without_label.return_value = [
            Revision("b1"),
            Revision("b2"),
            Revision("b3"),
        ]
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[-1:]
        )
        found = {"b2": "d9"}

        with patch(
            _LOOKUP, side_effect=lambda h, rev, sleep: found.get(rev)
        ) as lookup:
            run_change_request_from_sot(helper, sleep=_no_sleep)

        # b3 is never looked up once b2 matched
        assert [c[0][1] for c in lookup.call_args_list] == ["b1", "b2"]
        helper.origin_reader.changes.assert_called_once_with(
            Revision("b2"), Revision("r5")
        )
        _, _, _, baseline, _ = _written(helper)
        assert baseline == Baseline("d9", Revision("b2"))

    def test_candidates_are_canonicalized(self, make_helper, sample_changes):
        helper = make_helper()
        helper.origin_reader.find_baselines_without_label.return_value = [
            Revision("b1 PatchSet-2")
        ]
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[-1:]
        )

        with patch(_LOOKUP, return_value="d1") as lookup:
            run_change_request_from_sot(helper, sleep=_no_sleep)

        assert lookup.call_args[0][1] == "b1"

    def test_limit_is_passed_to_origin(self, make_helper, sample_changes):
        helper = make_helper(change_request_from_sot_limit=2)
        helper.origin_reader.find_baselines_without_label.return_value = [
            Revision("b1")
        ]
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[-1:]
        )

        with patch(_LOOKUP, return_value="d1"):
            run_change_request_from_sot(helper, sleep=_no_sleep)

        helper.origin_reader.find_baselines_without_label.assert_called_once_with(
            Revision("r5"), 2
        )

    def test_explicit_parent_is_the_only_candidate(
        self, make_helper, sample_changes
    ):
        helper = make_helper(change_baseline="b7")
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[-1:]
        )

        with patch(_LOOKUP, return_value="d3") as lookup:
            run_change_request_from_sot(helper, sleep=_no_sleep)

        helper.origin_reader.resolve.assert_called_once_with("b7")
        helper.origin_reader.find_baselines_without_label.assert_not_called()
        assert lookup.call_args[0][1] == "b7"
        assert _written(helper)[3] == Baseline("d3", Revision("b7"))

    def test_no_candidate_found_is_retryable(self, make_helper):
        helper = make_helper()
        helper.origin_reader.find_baselines_without_label.return_value = [
            Revision("b1"),
            Revision("b2"),
        ]

        with patch(_LOOKUP, return_value=None):
            with pytest.raises(MigrationError) as exc_info:
                run_change_request_from_sot(helper, sleep=_no_sleep)

        error = exc_info.value
        assert error.kind == ErrorKind.VALIDATION
        assert error.retryable is True
        assert ORIGIN_LABEL in str(error)
        assert "b2 value" in str(error)
        assert CHANGE_REQUEST_FROM_SOT_LIMIT_FLAG in str(error)
        helper.destination_writer.write.assert_not_called()

    def test_no_candidates_at_all(self, make_helper):
        helper = make_helper()
        helper.origin_reader.find_baselines_without_label.return_value = []

        with pytest.raises(MigrationError, match="None value") as exc_info:
            run_change_request_from_sot(helper, sleep=_no_sleep)

        assert exc_info.value.retryable is True

    def test_waits_for_destination_with_configured_delays(
        self, make_helper, make_change, sample_changes
    ):
        helper = make_helper(change_request_from_sot_retry=[1, 2])
        helper.origin_reader.find_baselines_without_label.return_value = [
            Revision("b1")
        ]
        helper.origin_reader.changes.return_value = ChangesResponse.for_changes(
            sample_changes[-1:]
        )
        synced = make_change("d4", labels={ORIGIN_LABEL: "b1"})
        visits = iter([None, None, synced])

        def visit(start, label_names, visitor):
            change = next(visits)
            return None if change is None else visitor(change, change.labels)

        helper.destination_writer.visit_changes_with_any_label.side_effect = visit
        sleeps = []

        run_change_request_from_sot(helper, sleep=sleeps.append)

        assert sleeps == [1, 2]
        assert _written(helper)[3] == Baseline("d4", Revision("b1"))
