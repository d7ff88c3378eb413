"""Run helper: the narrow surface the workflow modes use to reach the outside.

The origin reader, destination writer and operator console are external
collaborators described here as protocols. :class:`WorkflowRunHelper` wires
them to the workflow options for one run.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol, Sequence

from history_migrator.constants import LAST_REV_FLAG
from history_migrator.core.config import WorkflowOptions
from history_migrator.core.scope import PathScope
from history_migrator.exceptions import MigrationError
from history_migrator.types import (
    Author,
    Baseline,
    Change,
    ChangeBatch,
    ChangesResponse,
    DestinationEffect,
    EffectType,
    Labels,
    Metadata,
    Revision,
)
from history_migrator.utils.console import LogConsole
from history_migrator.utils.logging import log_with_context
from history_migrator.utils.profiler import Profiler

# Receives a visited destination change and its matching labels. Returning a
# value stops the visit and makes it the visit's result.
ChangeVisitor = Callable[[Change, Labels], "str | None"]


class Console(Protocol):
    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def prompt_confirmation(self, message: str) -> bool: ...


class OriginReader(Protocol):
    def changes(
        self, from_rev: Revision | None, to_rev: Revision
    ) -> ChangesResponse: ...

    def change(self, ref: Revision) -> Change: ...

    def find_baseline(self, start: Revision, label: str) -> Baseline | None: ...

    def find_baselines_without_label(
        self, start: Revision, limit: int
    ) -> list[Revision]: ...

    def supports_history(self) -> bool: ...

    def resolve(self, reference: str) -> Revision: ...


class DestinationWriter(Protocol):
    label_name_when_origin: str

    def supports_previous_ref(self) -> bool: ...

    def get_last_migrated(self, label: str) -> str | None: ...

    def visit_changes_with_any_label(
        self,
        start: Revision | None,
        label_names: Sequence[str],
        visitor: ChangeVisitor,
    ) -> str | None:
        """Visit changes carrying any of ``label_names``, most recent first.

        Returns the first non-None value returned by ``visitor``, or None if
        every change was visited.
        """
        ...

    def check_state(self, last_rev: Revision | None) -> list[str]: ...

    def write(
        self,
        revision: Revision,
        metadata: Metadata,
        changes: ChangeBatch,
        baseline: Baseline | None,
        change_identity: Revision,
    ) -> list[DestinationEffect]: ...


class WorkflowRunHelper:
    """Everything a workflow mode needs for one run.

    A helper can be narrowed to a set of changes with :meth:`for_changes`;
    the narrowed helper is the one that decides which changes are in scope.
    """

    def __init__(
        self,
        options: WorkflowOptions,
        origin_reader: OriginReader,
        destination_writer: DestinationWriter,
        resolved_ref: Revision,
        console: Console | None = None,
        profiler: Profiler | None = None,
        scope: PathScope | None = None,
        last_rev_override: str | None = None,
        changes: Iterable[Change] = (),
    ) -> None:
        self._options = options
        self._origin_reader = origin_reader
        self._destination_writer = destination_writer
        self._resolved_ref = resolved_ref
        self._console = console or LogConsole()
        self._profiler = profiler or Profiler()
        self._scope = scope or PathScope(options.origin_files)
        self._last_rev_override = last_rev_override
        self.changes: tuple[Change, ...] = tuple(changes)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def resolved_ref(self) -> Revision:
        return self._resolved_ref

    @property
    def console(self) -> Console:
        return self._console

    @property
    def profiler(self) -> Profiler:
        return self._profiler

    @property
    def workflow_options(self) -> WorkflowOptions:
        return self._options

    @property
    def origin_reader(self) -> OriginReader:
        return self._origin_reader

    @property
    def destination_writer(self) -> DestinationWriter:
        return self._destination_writer

    @property
    def is_force(self) -> bool:
        return self._options.force

    @property
    def is_squash_without_history(self) -> bool:
        return self._options.squash_without_history

    @property
    def default_author(self) -> Author:
        return Author.parse(self._options.default_author)

    @property
    def origin_label_name(self) -> str:
        return self._destination_writer.label_name_when_origin

    @property
    def origin_files(self) -> PathScope:
        return self._scope

    def destination_supports_previous_ref(self) -> bool:
        return self._destination_writer.supports_previous_ref()

    # ------------------------------------------------------------------
    # Origin and destination queries
    # ------------------------------------------------------------------

    def get_last_rev(self) -> Revision:
        """Return the last migrated origin revision.

        Raises:
            MigrationError: ``UNRESOLVED_REVISION`` when neither an override
                nor the destination can tell.
        """
        if self._last_rev_override:
            return self.origin_resolve(self._last_rev_override)

        last = self._destination_writer.get_last_migrated(self.origin_label_name)
        if last is None:
            raise MigrationError.unresolved_revision(
                f"Previous revision label {self.origin_label_name} could not be "
                f"found in the destination. Use {LAST_REV_FLAG} to set it explicitly"
            )
        return self.origin_resolve(last)

    def get_changes(
        self, from_rev: Revision | None, to_rev: Revision
    ) -> ChangesResponse:
        return self._origin_reader.changes(from_rev, to_rev)

    def origin_resolve(self, reference: str) -> Revision:
        return self._origin_reader.resolve(reference)

    def maybe_validate_repo_in_last_rev_state(self, metadata: Metadata | None) -> None:
        """Check the destination still matches the last migrated revision.

        Only runs when ``check_last_rev_state`` is enabled.
        """
        if not self._options.check_last_rev_state:
            return
        last_rev = self.get_last_rev()
        errors = self._destination_writer.check_state(last_rev)
        if errors:
            context = f" for '{metadata.message.strip()}'" if metadata else ""
            raise MigrationError.validation(
                f"Destination is not in the state of last migrated revision "
                f"{last_rev.as_string()}{context}: {'; '.join(errors)}"
            )

    # ------------------------------------------------------------------
    # Change scoping
    # ------------------------------------------------------------------

    def for_changes(self, changes: Iterable[Change]) -> WorkflowRunHelper:
        """Return a helper scoped to ``changes``."""
        return WorkflowRunHelper(
            self._options,
            self._origin_reader,
            self._destination_writer,
            self._resolved_ref,
            console=self._console,
            profiler=self._profiler,
            scope=self._scope,
            last_rev_override=self._last_rev_override,
            changes=changes,
        )

    def skip_change(self, change: Change) -> bool:
        """True if ``change`` touches nothing inside the origin file scope."""
        if self._scope.touches(change):
            return False
        log_with_context(
            logging.INFO,
            f"Skipping change {change.revision.as_string()}: "
            f"no files match {self._scope}",
            revision=change.revision.as_string(),
        )
        return True

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    def migrate(
        self,
        revision: Revision,
        last_rev: Revision | None,
        metadata: Metadata,
        changes: ChangeBatch,
        baseline: Baseline | None,
        change_identity: Revision,
        console: Console | None = None,
    ) -> list[DestinationEffect]:
        """Run one migration unit and return its destination effects.

        Raises:
            MigrationError: ``EMPTY_CHANGE`` when the destination reports no
                effect other than NOOP.
        """
        console = console or self._console
        scoped = ", ".join(change.ref for change in self.changes) or "unscoped"
        log_with_context(
            logging.DEBUG,
            f"Migrating {revision.as_string()} (last: "
            f"{last_rev.as_string() if last_rev else 'none'}, "
            f"{len(changes.current)} change(s), scope: {scoped}, baseline: "
            f"{baseline.baseline if baseline else 'none'})",
            revision=revision.as_string(),
        )

        effects = self._destination_writer.write(
            revision, metadata, changes, baseline, change_identity
        )

        for effect in effects:
            if effect.errors:
                console.error(f"{effect.summary}: {'; '.join(effect.errors)}")
            else:
                console.info(f"{effect.type.value}: {effect.summary}")

        if effects and all(e.type == EffectType.NOOP for e in effects):
            raise MigrationError.empty_change(
                f"Migration of {revision.as_string()} produced no changes in the "
                "destination"
            )
        return effects
