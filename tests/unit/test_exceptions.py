"""Tests for the migration error types."""

import pytest

from history_migrator.exceptions import (
    ConfigError,
    ErrorKind,
    MigrationError,
    MigratorError,
    check_condition,
)

CONSTRUCTORS = [
    (MigrationError.validation, ErrorKind.VALIDATION),
    (MigrationError.repository, ErrorKind.REPOSITORY),
    (MigrationError.empty_change, ErrorKind.EMPTY_CHANGE),
    (MigrationError.rejected, ErrorKind.REJECTED),
    (MigrationError.unresolved_revision, ErrorKind.UNRESOLVED_REVISION),
]


class TestMigrationError:
    """Tests for MigrationError kinds, flags and message handling."""

    @pytest.mark.parametrize("factory,kind", CONSTRUCTORS)
    def test_named_constructors_set_kind(self, factory, kind):
        error = factory("boom")
        assert error.kind == kind
        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.retryable is False

    @pytest.mark.parametrize("factory,kind", CONSTRUCTORS)
    def test_caught_by_migrator_error(self, factory, kind):
        with pytest.raises(MigratorError):
            raise factory("caught by base")

    def test_validation_can_be_retryable(self):
        error = MigrationError.validation("try later", retryable=True)
        assert error.retryable is True

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (ErrorKind.VALIDATION, True),
            (ErrorKind.UNRESOLVED_REVISION, True),
            (ErrorKind.REPOSITORY, False),
            (ErrorKind.EMPTY_CHANGE, False),
            (ErrorKind.REJECTED, False),
        ],
    )
    def test_is_validation(self, kind, expected):
        assert MigrationError(kind, "x").is_validation is expected

    def test_repr_includes_kind(self):
        assert "REPOSITORY" in repr(MigrationError.repository("disk full"))

    def test_config_error_is_migrator_error(self):
        assert issubclass(ConfigError, MigratorError)
        assert not issubclass(ConfigError, MigrationError)


class TestCheckCondition:
    """Tests for check_condition()."""

    def test_passes_when_true(self):
        check_condition(True, "never raised %s", "x")

    def test_raises_validation_with_formatted_message(self):
        with pytest.raises(MigrationError, match="bad value 3") as exc_info:
            check_condition(False, "bad value %s", 3)
        assert exc_info.value.kind == ErrorKind.VALIDATION

    def test_message_without_args_is_not_formatted(self):
        with pytest.raises(MigrationError, match="100% broken"):
            check_condition(False, "100% broken")
