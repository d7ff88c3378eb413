"""Shared type definitions for the history migration tool.

Value types flowing between the workflow modes and the origin/destination
collaborators: revisions, changes, change-range responses, baselines and the
per-migration-unit metadata and results.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence, Tuple, Union

# Ordered multimap: duplicate keys allowed, insertion order kept
Labels = Tuple[Tuple[str, str], ...]

_AUTHOR_RE = re.compile(r"^\s*(?P<name>[^<]*?)\s*<(?P<email>[^>]*)>\s*$")


def canonical_revision_id(revision: str) -> str:
    """Return the identifier part of a revision string.

    Revision strings can carry review metadata after the identifier, for
    example ``'aaaabbbbcccc PatchSet-1'``. Only the part before the first
    space is returned.
    """
    return revision.split(" ", 1)[0]


# ---------------------------------------------------------------------------
# Revisions and authors
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Revision:
    """An origin- or destination-specific revision identifier."""

    id: str

    def as_string(self) -> str:
        return self.id

    @property
    def canonical_id(self) -> str:
        return canonical_revision_id(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Revision):
            return NotImplemented
        return self.canonical_id == other.canonical_id

    def __hash__(self) -> int:
        return hash(self.canonical_id)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class Author:
    """Author of a change or a migration unit."""

    name: str
    email: str

    @classmethod
    def parse(cls, value: str) -> Author:
        """Parse an author in ``"Name <email>"`` form."""
        match = _AUTHOR_RE.match(value)
        if not match:
            raise ValueError(f"Invalid author '{value}', expected 'Name <email>'")
        return cls(name=match.group("name"), email=match.group("email"))

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


LabelInput = Union[Mapping[str, Union[str, Sequence[str]]], Iterable[Tuple[str, str]]]


def labels_from_mapping(data: LabelInput | None) -> Labels:
    """Build an ordered label multimap.

    Accepts either a mapping of ``name -> value`` / ``name -> [values]`` or
    an iterable of ``(name, value)`` pairs.
    """
    if not data:
        return ()
    if isinstance(data, Mapping):
        pairs: list[tuple[str, str]] = []
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(key), str(v)) for v in value)
            else:
                pairs.append((str(key), str(value)))
        return tuple(pairs)
    return tuple((str(k), str(v)) for k, v in data)


def label_values(labels: Labels, names: Iterable[str]) -> Labels:
    """Return the ``(name, value)`` pairs whose name is in ``names``."""
    wanted = set(names)
    return tuple((k, v) for k, v in labels if k in wanted)


# ---------------------------------------------------------------------------
# Changes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Change:
    """A change read from the origin. Immutable once read."""

    revision: Revision
    message: str
    author: Author
    labels: Labels = ()
    # Paths touched by the change; None when the origin does not know
    files: tuple[str, ...] | None = None

    @property
    def ref(self) -> str:
        """Identifier of the change, used to key profiling scopes."""
        return self.revision.as_string()

    @property
    def first_line(self) -> str:
        return self.message.split("\n", 1)[0]


class EmptyReason(str, Enum):
    """Why a change-range query returned no changes."""

    NO_CHANGES = "NO_CHANGES"
    TO_IS_ANCESTOR = "TO_IS_ANCESTOR"
    UNRELATED_REVISIONS = "UNRELATED_REVISIONS"


@dataclass(frozen=True)
class ChangesResponse:
    """Result of a change-range query.

    Either a non-empty sequence of changes ordered oldest to newest, or no
    changes and the reason why.
    """

    changes: tuple[Change, ...] = ()
    empty_reason: EmptyReason | None = None

    def __post_init__(self) -> None:
        if bool(self.changes) == (self.empty_reason is not None):
            raise ValueError(
                "ChangesResponse must have either changes or an empty reason, "
                f"got {len(self.changes)} change(s) and reason {self.empty_reason}"
            )

    @classmethod
    def for_changes(cls, changes: Iterable[Change]) -> ChangesResponse:
        return cls(changes=tuple(changes))

    @classmethod
    def no_changes(cls, reason: EmptyReason) -> ChangesResponse:
        return cls(empty_reason=reason)

    @property
    def is_empty(self) -> bool:
        return not self.changes


@dataclass(frozen=True)
class Baseline:
    """Destination revision a change request is diffed against.

    ``origin_revision`` is None when the baseline was supplied explicitly by
    the operator and no origin change is known to correspond to it.
    """

    baseline: str
    origin_revision: Revision | None = None


# ---------------------------------------------------------------------------
# Migration units
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Metadata:
    """Message, author and labels of a migration unit."""

    message: str
    author: Author
    labels: Labels = ()


@dataclass(frozen=True)
class ChangeBatch:
    """Changes handed to a migration unit.

    ``current`` is ordered oldest to newest. ``migrated`` holds the changes
    already migrated earlier in the same run, most recent first.
    """

    current: tuple[Change, ...] = ()
    migrated: tuple[Change, ...] = ()


class EffectType(str, Enum):
    """Outcome of a migration unit in the destination."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    NOOP = "NOOP"
    INSUFFICIENT_APPROVALS = "INSUFFICIENT_APPROVALS"
    ERROR = "ERROR"
    TEMPORARY_ERROR = "TEMPORARY_ERROR"
    STARTED = "STARTED"


@dataclass(frozen=True)
class DestinationEffect:
    """One effect a migration unit had in the destination."""

    type: EffectType
    summary: str
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
