"""Shared utilities for logging, the operator console and profiling."""

__all__ = [
    "console",
    "logging",
    "profiler",
]
