"""
Logging setup for the history migration tool.

Every module logs through :func:`log_with_context`, which attaches run context
(the workflow ``mode``, the origin ``revision``, a profiled ``task``) to the
record so the formatters below can show it.
"""

import json
import logging
import os
from typing import Any, Optional

LOGGER_NAME = "history_migrator"

# Context keys shown by EnhancedFormatter in verbose mode, in display order
CONTEXT_KEYS = ("mode", "revision")

_STANDARD_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime", "taskName"}
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, context extras included as top-level keys."""

    def format(self, record):
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_KEYS
        )
        return json.dumps(payload, default=str)


class EnhancedFormatter(logging.Formatter):
    """
    Plain-text formatter. In verbose mode the source location is added and the
    mode/revision context is appended as ``[mode=... revision=...]``.
    """

    DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
    VERBOSE_FORMAT = (
        "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
    )

    def __init__(self, fmt=None, datefmt=None, style="%", verbose=False):
        if verbose:
            fmt = self.VERBOSE_FORMAT
        super().__init__(fmt or self.DEFAULT_FORMAT, datefmt, style)
        self.verbose = verbose

    def format(self, record):
        text = super().format(record)
        if not self.verbose:
            return text
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_KEYS
            if getattr(record, key, None)
        )
        return f"{text} [{context}]" if context else text


def setup_main_log_file(output_dir: str, json_logs: bool = False) -> logging.FileHandler:
    """
    Attach a ``migration.log`` file handler under ``output_dir``.

    The file always records DEBUG and above, whatever the console level is.

    Args:
        output_dir: Directory for the log file, created if missing
        json_logs: Write JSON lines instead of plain text

    Returns:
        The attached file handler
    """
    os.makedirs(output_dir, exist_ok=True)
    log_path = os.path.join(output_dir, "migration.log")

    handler = logging.FileHandler(log_path, mode="w")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonFormatter() if json_logs else EnhancedFormatter())

    migrator_logger = logging.getLogger(LOGGER_NAME)
    migrator_logger.addHandler(handler)
    migrator_logger.info(f"Writing run log to {log_path}")
    return handler


def setup_logger(
    verbose: bool = False,
    output_dir: Optional[str] = None,
    json_logs: bool = False,
) -> logging.Logger:
    """
    Configure the tool logger for one run and return it.

    Handlers from a previous run are removed first, so calling this twice in
    one process does not duplicate output.

    Args:
        verbose: Show DEBUG messages and record context on the console
        output_dir: If set, also write ``migration.log`` there
        json_logs: Format ``migration.log`` as JSON lines

    Returns:
        The ``history_migrator`` logger
    """
    migrator_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(migrator_logger.handlers):
        migrator_logger.removeHandler(handler)

    # Handlers filter by level; the logger itself lets everything through
    migrator_logger.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(EnhancedFormatter(verbose=verbose))
    migrator_logger.addHandler(console)

    if output_dir:
        setup_main_log_file(output_dir, json_logs)

    return migrator_logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log ``message`` on the tool logger with context extras.

    Args:
        level: Logging level, e.g. ``logging.WARNING``
        message: The message
        **kwargs: Context attached to the record. ``None`` values are dropped;
            ``exc_info`` is handed to the logger instead.
    """
    exc_info = kwargs.pop("exc_info", None)
    extra = {key: value for key, value in kwargs.items() if value is not None}
    logging.getLogger(LOGGER_NAME).log(level, message, extra=extra, exc_info=exc_info)


def get_logger():
    """Return the tool logger, giving it an INFO console handler if it has none."""
    migrator_logger = logging.getLogger(LOGGER_NAME)
    if not migrator_logger.handlers:
        migrator_logger.setLevel(logging.INFO)
        console = logging.StreamHandler()
        console.setLevel(logging.INFO)
        console.setFormatter(EnhancedFormatter())
        migrator_logger.addHandler(console)
    return migrator_logger


# Replaced by setup_logger() when a command runs
logger = get_logger()
