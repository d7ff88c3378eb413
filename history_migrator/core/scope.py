"""Origin file scope: which paths a migration considers."""

from __future__ import annotations

import re
from functools import lru_cache

from history_migrator.core.config import OriginFilesConfig
from history_migrator.types import Change


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob with ``**`` support into a compiled regex.

    ``*`` matches within one path segment, ``**`` matches across segments and
    ``?`` matches one non-separator character.
    """
    out = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "*":
            if pattern[i : i + 2] == "**":
                i += 2
                if pattern[i : i + 1] == "/":
                    # "**/" also matches zero directories
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("^" + "".join(out) + "$")


class PathScope:
    """Include/exclude glob matcher built from :class:`OriginFilesConfig`."""

    def __init__(self, config: OriginFilesConfig | None = None) -> None:
        self.config = config or OriginFilesConfig()

    def matches(self, path: str) -> bool:
        path = path.lstrip("/")
        if not any(_glob_to_regex(p).match(path) for p in self.config.include):
            return False
        return not any(_glob_to_regex(p).match(path) for p in self.config.exclude)

    def touches(self, change: Change) -> bool:
        """True if the change touches a path in scope, or its paths are unknown."""
        if change.files is None:
            return True
        return any(self.matches(path) for path in change.files)

    def __str__(self) -> str:
        return self.config.describe()
