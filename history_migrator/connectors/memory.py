"""
In-memory origin and destination connectors.

Both sides keep a linear history, oldest change first. They are loaded from a
YAML history file so migrations can be rehearsed without touching a real
repository::

    origin:
      ref: r3
      changes:
        - revision: r1
          message: Initial import
          author: Alice <alice@example.com>
          files: [src/main.py]
    destination:
      origin_label: GitOrigin-RevId
      changes:
        - revision: d1
          message: Initial import
          author: Alice <alice@example.com>
          labels: {GitOrigin-RevId: r1}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from history_migrator.constants import DEFAULT_ORIGIN_LABEL
from history_migrator.core.run_helper import ChangeVisitor
from history_migrator.core.scope import PathScope
from history_migrator.exceptions import ConfigError, MigrationError
from history_migrator.types import (
    Author,
    Baseline,
    Change,
    ChangeBatch,
    ChangesResponse,
    DestinationEffect,
    EffectType,
    EmptyReason,
    Metadata,
    Revision,
    canonical_revision_id,
    label_values,
    labels_from_mapping,
)
from history_migrator.utils.logging import log_with_context


def change_from_dict(data: dict[str, Any]) -> Change:
    """Build a Change from its YAML representation."""
    if not isinstance(data, dict) or "revision" not in data:
        raise ConfigError(f"Invalid change entry {data!r}: 'revision' is required")
    files = data.get("files")
    try:
        author = Author.parse(data.get("author") or "Unknown <unknown@example.com>")
    except ValueError as e:
        raise ConfigError(str(e)) from e
    return Change(
        revision=Revision(str(data["revision"])),
        message=data.get("message") or "",
        author=author,
        labels=labels_from_mapping(data.get("labels")),
        files=tuple(files) if files is not None else None,
    )


class InMemoryOrigin:
    """Origin reader over a linear list of changes."""

    def __init__(
        self,
        changes: Sequence[Change],
        scope: PathScope | None = None,
        history_supported: bool = True,
    ) -> None:
        self._changes = list(changes)
        self._scope = scope or PathScope()
        self._history_supported = history_supported

    def _find(self, revision: Revision) -> int | None:
        for index, change in enumerate(self._changes):
            if change.revision == revision:
                return index
        return None

    def _index(self, revision: Revision) -> int:
        index = self._find(revision)
        if index is None:
            raise MigrationError.unresolved_revision(
                f"Cannot resolve reference '{revision.as_string()}' in the origin"
            )
        return index

    def resolve(self, reference: str) -> Revision:
        return self._changes[self._index(Revision(reference))].revision

    def supports_history(self) -> bool:
        return self._history_supported

    def change(self, ref: Revision) -> Change:
        return self._changes[self._index(ref)]

    def changes(self, from_rev: Revision | None, to_rev: Revision) -> ChangesResponse:
        to_index = self._index(to_rev)
        if from_rev is None:
            candidates = self._changes[: to_index + 1]
        else:
            from_index = self._find(from_rev)
            if from_index is None:
                return ChangesResponse.no_changes(EmptyReason.UNRELATED_REVISIONS)
            if to_index <= from_index:
                return ChangesResponse.no_changes(EmptyReason.TO_IS_ANCESTOR)
            candidates = self._changes[from_index + 1 : to_index + 1]

        if not any(self._scope.touches(c) for c in candidates):
            return ChangesResponse.no_changes(EmptyReason.NO_CHANGES)
        return ChangesResponse.for_changes(candidates)

    def find_baseline(self, start: Revision, label: str) -> Baseline | None:
        for change in reversed(self._changes[: self._index(start)]):
            values = label_values(change.labels, [label])
            if values:
                return Baseline(values[0][1], change.revision)
        return None

    def find_baselines_without_label(
        self, start: Revision, limit: int
    ) -> list[Revision]:
        ancestors = [c.revision for c in reversed(self._changes[: self._index(start)])]
        if limit > 0:
            return ancestors[:limit]
        return ancestors


class InMemoryDestination:
    """Destination writer that records migrated changes in memory.

    Submitted migrations are appended to ``changes`` with the origin label.
    Change requests (migrations against a baseline) are recorded in
    ``reviews`` and never become part of the destination history.
    """

    def __init__(
        self,
        origin_label: str = DEFAULT_ORIGIN_LABEL,
        changes: Sequence[Change] = (),
        previous_ref_supported: bool = True,
        effect_errors: dict[str, list[str]] | None = None,
        revision_prefix: str = "d",
    ) -> None:
        self.label_name_when_origin = origin_label
        self.changes: list[Change] = list(changes)
        self.reviews: list[tuple[Change, Baseline]] = []
        self.created: list[Change] = []
        self._previous_ref_supported = previous_ref_supported
        self._effect_errors = {
            canonical_revision_id(k): list(v) for k, v in (effect_errors or {}).items()
        }
        self._revision_prefix = revision_prefix
        self._next_id = len(self.changes) + 1

    def supports_previous_ref(self) -> bool:
        return self._previous_ref_supported

    def get_last_migrated(self, label: str) -> str | None:
        for change in reversed(self.changes):
            values = label_values(change.labels, [label])
            if values:
                return values[0][1]
        return None

    def visit_changes_with_any_label(
        self,
        start: Revision | None,
        label_names: Sequence[str],
        visitor: ChangeVisitor,
    ) -> str | None:
        history = list(reversed(self.changes))
        if start is not None:
            starts = [i for i, c in enumerate(history) if c.revision == start]
            history = history[starts[0] :] if starts else []
        for change in history:
            matched = label_values(change.labels, label_names)
            if not matched:
                continue
            found = visitor(change, matched)
            if found is not None:
                return found
        return None

    def check_state(self, last_rev: Revision | None) -> list[str]:
        recorded = self.get_last_migrated(self.label_name_when_origin)
        if last_rev is None or recorded is None:
            return []
        if canonical_revision_id(recorded) != last_rev.canonical_id:
            return [
                f"destination head records {recorded}, expected {last_rev.as_string()}"
            ]
        return []

    def write(
        self,
        revision: Revision,
        metadata: Metadata,
        changes: ChangeBatch,
        baseline: Baseline | None,
        change_identity: Revision,
    ) -> list[DestinationEffect]:
        last = self.get_last_migrated(self.label_name_when_origin)
        if baseline is None and last is not None and (
            canonical_revision_id(last) == revision.canonical_id
        ):
            return [
                DestinationEffect(
                    EffectType.NOOP,
                    f"Destination already contains {revision.as_string()}",
                )
            ]

        files = sorted({f for c in changes.current for f in (c.files or ())})
        written = Change(
            revision=Revision(f"{self._revision_prefix}{self._next_id}"),
            message=metadata.message,
            author=metadata.author,
            labels=metadata.labels
            + ((self.label_name_when_origin, revision.as_string()),),
            files=tuple(files),
        )
        self._next_id += 1
        errors = tuple(self._effect_errors.get(revision.canonical_id, ()))

        if baseline is not None:
            self.reviews.append((written, baseline))
            summary = (
                f"Created review {written.revision.as_string()} for "
                f"{change_identity.as_string()} on top of {baseline.baseline}"
            )
        else:
            self.changes.append(written)
            summary = (
                f"Created revision {written.revision.as_string()} for "
                f"{revision.as_string()}"
            )
        self.created.append(written)
        log_with_context(logging.DEBUG, summary, revision=revision.as_string())
        return [DestinationEffect(EffectType.CREATED, summary, errors)]


@dataclass
class History:
    """Origin, destination and requested reference loaded from a history file."""

    origin: InMemoryOrigin
    destination: InMemoryDestination
    ref: str


def load_history(path: Path, scope: PathScope | None = None) -> History:
    """Load a YAML history file into in-memory connectors.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Failed to load history file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"History file {path} must contain a mapping")

    origin_data = raw.get("origin") or {}
    destination_data = raw.get("destination") or {}

    origin_changes = [change_from_dict(c) for c in origin_data.get("changes") or []]
    if not origin_changes:
        raise ConfigError(f"History file {path} has no origin changes")

    origin = InMemoryOrigin(
        origin_changes,
        scope=scope,
        history_supported=bool(origin_data.get("supports_history", True)),
    )
    destination = InMemoryDestination(
        origin_label=destination_data.get("origin_label") or DEFAULT_ORIGIN_LABEL,
        changes=[change_from_dict(c) for c in destination_data.get("changes") or []],
        previous_ref_supported=bool(
            destination_data.get("supports_previous_ref", True)
        ),
        effect_errors=destination_data.get("effect_errors"),
    )
    ref = str(origin_data.get("ref") or origin_changes[-1].revision.as_string())

    log_with_context(
        logging.INFO,
        f"Loaded history from {path}: {len(origin_changes)} origin change(s), "
        f"{len(destination.changes)} destination change(s)",
    )
    return History(origin=origin, destination=destination, ref=ref)
