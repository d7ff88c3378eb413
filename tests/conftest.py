"""Shared test fixtures for the history_migrator test suite."""

import pytest

from history_migrator.types import Author, Change, Revision, labels_from_mapping

ALICE = Author("Alice Smith", "alice@example.com")


def _make_change(rev, message=None, files=None, labels=None, author=ALICE):
    return Change(
        revision=Revision(rev),
        message=message or f"Change {rev}\n",
        author=author,
        labels=labels_from_mapping(labels),
        files=tuple(files) if files is not None else None,
    )


@pytest.fixture()
def make_change():
    """Factory fixture building origin changes with sensible test defaults.

    Usage::

        def test_something(make_change):
            change = make_change("r1", files=["src/main.py"])
    """
    return _make_change


@pytest.fixture()
def sample_changes():
    """Return origin changes r1..r5, oldest first, each touching one file."""
    return [_make_change(f"r{i}", files=[f"src/file{i}.py"]) for i in range(1, 6)]


@pytest.fixture()
def history_file(tmp_path):
    """Write a small history YAML file and return its path."""
    path = tmp_path / "history.yaml"
    path.write_text(
        """
origin:
  ref: r4
  changes:
    - revision: r1
      message: Initial import
      author: Alice Smith <alice@example.com>
      files: [src/main.py]
    - revision: r2
      message: Add feature
      author: Bob Jones <bob@example.com>
      files: [src/feature.py]
    - revision: r3
      message: Update docs
      author: Alice Smith <alice@example.com>
      files: [docs/index.md]
    - revision: r4
      message: Fix bug
      author: Bob Jones <bob@example.com>
      files: [src/main.py]
destination:
  origin_label: GitOrigin-RevId
  changes:
    - revision: d1
      message: Initial import
      author: Alice Smith <alice@example.com>
      labels:
        GitOrigin-RevId: r1
"""
    )
    return path
