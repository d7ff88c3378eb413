"""Lightweight timing of named tasks during a migration run."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator

from history_migrator.utils.logging import log_with_context


class Profiler:
    """Records how long named tasks take.

    ``clock`` defaults to :func:`time.monotonic` and can be replaced in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.tasks: list[tuple[str, float]] = []

    @contextmanager
    def start(self, name: str) -> Iterator[None]:
        started = self._clock()
        try:
            yield
        finally:
            elapsed = self._clock() - started
            self.tasks.append((name, elapsed))
            log_with_context(
                logging.DEBUG, f"Task '{name}' took {elapsed:.3f}s", task=name
            )

    def total(self) -> float:
        return sum(elapsed for _, elapsed in self.tasks)

    def report(self) -> None:
        """Log how many tasks ran and their total time, then forget them."""
        if not self.tasks:
            return
        log_with_context(
            logging.INFO,
            f"Profiled {len(self.tasks)} task(s) in {self.total():.3f}s",
        )
        self.tasks.clear()
