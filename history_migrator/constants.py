"""Constants shared across the history migration tool."""

# Operator-facing flag names referenced in error and warning messages
FORCE_FLAG = "--force"
CHANGE_REQUEST_PARENT_FLAG = "--change_request_parent"
CHANGE_REQUEST_FROM_SOT_LIMIT_FLAG = "--change_request_from_sot_limit"
LAST_REV_FLAG = "--last-rev"

# Message used for SQUASH migration units
GENERATED_IMPORT_MESSAGE = "Project import generated by History Migrator.\n"

DEFAULT_AUTHOR = "History Migrator <noreply@example.com>"
DEFAULT_ORIGIN_LABEL = "GitOrigin-RevId"

# Seconds to wait between destination baseline lookups
DEFAULT_SOT_RETRY_DELAYS = [1, 1, 2, 3, 5, 8, 13]

# CLI exit codes
EXIT_FAILURE = 1
EXIT_NO_CHANGES = 2
