"""
Configuration module for the history migration tool.

This module provides functions for loading workflow options from YAML files
and creating default configurations. Options cover the workflow mode, the
force override, baseline overrides, iteration limits and the retry delays used
while looking for a destination baseline.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from history_migrator.constants import DEFAULT_AUTHOR, DEFAULT_SOT_RETRY_DELAYS
from history_migrator.exceptions import ConfigError
from history_migrator.types import Author
from history_migrator.utils.logging import log_with_context

MODE_NAMES = ("SQUASH", "ITERATIVE", "CHANGE_REQUEST", "CHANGE_REQUEST_FROM_SOT")

UNLIMITED_CHANGES = sys.maxsize


def normalize_mode_name(value: str) -> str:
    """Return the canonical upper-case mode name, raising ConfigError if unknown."""
    name = str(value).strip().upper()
    if name not in MODE_NAMES:
        raise ConfigError(
            f"Invalid mode '{value}'. Expected one of: {', '.join(MODE_NAMES)}"
        )
    return name


def _non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"Invalid {name} '{value}': expected a non-negative integer")
    return value


@dataclass
class OriginFilesConfig:
    """Glob rules selecting the origin paths that participate in a migration."""

    include: list[str] = field(default_factory=lambda: ["**"])
    exclude: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> OriginFilesConfig:
        if not data:
            return cls()
        return cls(
            include=list(data.get("include") or ["**"]),
            exclude=list(data.get("exclude") or []),
        )

    def describe(self) -> str:
        if self.exclude:
            return f"glob(include = {self.include}, exclude = {self.exclude})"
        return f"glob(include = {self.include})"


@dataclass
class WorkflowOptions:
    """Typed options consumed by the workflow modes.

    All fields have defaults so an empty or missing config file yields a
    usable SQUASH configuration.
    """

    mode: str = "SQUASH"

    # Override for otherwise-fatal empty/ancestor conditions
    force: bool = False

    # Explicit destination baseline for change request modes
    change_baseline: str = ""

    iterative_limit_changes: int = UNLIMITED_CHANGES

    # Candidate origin baselines to try; -1 means no limit
    change_request_from_sot_limit: int = -1
    change_request_from_sot_retry: list[int] = field(
        default_factory=lambda: list(DEFAULT_SOT_RETRY_DELAYS)
    )

    squash_without_history: bool = False
    check_last_rev_state: bool = False
    default_author: str = DEFAULT_AUTHOR

    origin_files: OriginFilesConfig = field(default_factory=OriginFilesConfig)

    def __post_init__(self) -> None:
        self.mode = normalize_mode_name(self.mode)
        if self.iterative_limit_changes is None:
            self.iterative_limit_changes = UNLIMITED_CHANGES
        if (
            isinstance(self.iterative_limit_changes, bool)
            or not isinstance(self.iterative_limit_changes, int)
            or self.iterative_limit_changes < 1
        ):
            raise ConfigError(
                f"Invalid iterative_limit_changes '{self.iterative_limit_changes}': "
                "must be at least 1"
            )
        if isinstance(self.change_request_from_sot_limit, bool) or not isinstance(
            self.change_request_from_sot_limit, int
        ):
            raise ConfigError(
                "Invalid change_request_from_sot_limit "
                f"'{self.change_request_from_sot_limit}': expected an integer"
            )
        self.change_request_from_sot_retry = [
            _non_negative_int("change_request_from_sot_retry delay", delay)
            for delay in self.change_request_from_sot_retry
        ]
        try:
            Author.parse(str(self.default_author))
        except ValueError as e:
            raise ConfigError(f"Invalid default_author: {e}") from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowOptions:
        """Create WorkflowOptions from a raw config dictionary."""
        retry = data.get("change_request_from_sot_retry")
        if retry is None:
            retry = list(DEFAULT_SOT_RETRY_DELAYS)
        elif not isinstance(retry, list):
            raise ConfigError(
                f"Invalid change_request_from_sot_retry '{retry}': expected a list"
            )
        return cls(
            mode=data.get("mode", "SQUASH"),
            force=bool(data.get("force", False)),
            change_baseline=data.get("change_baseline") or "",
            iterative_limit_changes=data.get(
                "iterative_limit_changes", UNLIMITED_CHANGES
            ),
            change_request_from_sot_limit=data.get(
                "change_request_from_sot_limit", -1
            ),
            change_request_from_sot_retry=retry,
            squash_without_history=bool(data.get("squash_without_history", False)),
            check_last_rev_state=bool(data.get("check_last_rev_state", False)),
            default_author=data.get("default_author") or DEFAULT_AUTHOR,
            origin_files=OriginFilesConfig.from_dict(data.get("origin_files")),
        )


def _read_yaml(config_path: Path) -> Any:
    if not config_path.exists():
        log_with_context(
            logging.WARNING,
            f"No config file at {config_path}; running with default options",
        )
        return None
    try:
        with config_path.open() as stream:
            data = yaml.safe_load(stream)
    except (yaml.YAMLError, OSError) as e:
        log_with_context(
            logging.WARNING,
            f"Ignoring unreadable config file {config_path}: {e}",
        )
        return None
    log_with_context(logging.INFO, f"Read workflow options from {config_path}")
    return data


def load_config(config_path: Path) -> WorkflowOptions:
    """
    Load workflow options from a YAML file.

    A missing, empty or unparsable file gives the default options. A file
    that parses but holds invalid values is an error.

    Args:
        config_path: YAML file to read

    Returns:
        Validated WorkflowOptions

    Raises:
        ConfigError: If the file is not a mapping or a value is invalid.
    """
    data = _read_yaml(config_path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return WorkflowOptions.from_dict(data)


def create_default_config(output_path: Path) -> bool:
    """
    Write a config file holding every option at its suggested value.

    An existing file is left untouched.

    Args:
        output_path: Where to write the YAML file

    Returns:
        True if the file was written
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Refusing to overwrite existing config file {output_path}",
        )
        return False

    defaults = WorkflowOptions(iterative_limit_changes=100)
    document = {
        "mode": defaults.mode,
        "force": defaults.force,
        "change_baseline": defaults.change_baseline,
        "iterative_limit_changes": defaults.iterative_limit_changes,
        "change_request_from_sot_limit": defaults.change_request_from_sot_limit,
        "change_request_from_sot_retry": defaults.change_request_from_sot_retry,
        "squash_without_history": defaults.squash_without_history,
        "check_last_rev_state": defaults.check_last_rev_state,
        "default_author": defaults.default_author,
        "origin_files": {
            "include": defaults.origin_files.include,
            "exclude": defaults.origin_files.exclude,
        },
    }

    try:
        with output_path.open("w") as stream:
            yaml.safe_dump(document, stream, default_flow_style=False, sort_keys=False)
    except OSError as e:
        log_with_context(logging.ERROR, f"Could not write config file {output_path}: {e}")
        return False
    log_with_context(logging.INFO, f"Wrote default config file {output_path}")
    return True
