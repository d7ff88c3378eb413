"""Core migration logic: configuration, the run helper and the workflow modes."""

__all__ = [
    "baseline",
    "change_request",
    "config",
    "empty_changes",
    "iterative",
    "run_helper",
    "scope",
    "squash",
    "workflow_mode",
]
