"""Error types for the history migration tool.

Failures raised by the workflow modes share one exception type,
:class:`MigrationError`, tagged with an :class:`ErrorKind`. Callers branch on
``error.kind`` instead of on a tree of exception classes.
"""

from __future__ import annotations

from enum import Enum


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class ErrorKind(str, Enum):
    """Closed set of failure kinds a migration run can produce."""

    VALIDATION = "VALIDATION"
    REPOSITORY = "REPOSITORY"
    EMPTY_CHANGE = "EMPTY_CHANGE"
    REJECTED = "REJECTED"
    UNRESOLVED_REVISION = "UNRESOLVED_REVISION"


class MigrationError(MigratorError):
    """A failure raised while running a workflow mode.

    Attributes:
        kind: What went wrong.
        retryable: Hint that running again later may succeed without
            reconfiguration.
    """

    def __init__(
        self, kind: ErrorKind, message: str, retryable: bool = False
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.retryable = retryable

    @property
    def message(self) -> str:
        return str(self)

    @property
    def is_validation(self) -> bool:
        """True for bad configuration or an unsatisfiable precondition."""
        return self.kind in (ErrorKind.VALIDATION, ErrorKind.UNRESOLVED_REVISION)

    @classmethod
    def validation(cls, message: str, retryable: bool = False) -> MigrationError:
        return cls(ErrorKind.VALIDATION, message, retryable=retryable)

    @classmethod
    def repository(cls, message: str) -> MigrationError:
        return cls(ErrorKind.REPOSITORY, message)

    @classmethod
    def empty_change(cls, message: str) -> MigrationError:
        return cls(ErrorKind.EMPTY_CHANGE, message)

    @classmethod
    def rejected(cls, message: str) -> MigrationError:
        return cls(ErrorKind.REJECTED, message)

    @classmethod
    def unresolved_revision(cls, message: str) -> MigrationError:
        return cls(ErrorKind.UNRESOLVED_REVISION, message)

    def __repr__(self) -> str:
        return (
            f"MigrationError(kind={self.kind.value}, message={str(self)!r}, "
            f"retryable={self.retryable})"
        )


def check_condition(condition: bool, message: str, *args: object) -> None:
    """Raise a validation error with ``message % args`` unless ``condition`` holds."""
    if not condition:
        raise MigrationError.validation(message % args if args else message)
