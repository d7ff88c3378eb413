#!/usr/bin/env python3
"""
Migrate change history from an origin repository to a destination repository
"""

__version__ = "0.1.0"

from history_migrator.core.config import WorkflowOptions, load_config
from history_migrator.core.run_helper import WorkflowRunHelper
from history_migrator.core.workflow_mode import WorkflowMode
from history_migrator.exceptions import ErrorKind, MigrationError
from history_migrator.types import (
    Baseline,
    Change,
    ChangeBatch,
    ChangesResponse,
    EmptyReason,
    Metadata,
    Revision,
    canonical_revision_id,
)
