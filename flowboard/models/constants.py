"""Constants for flowboard.

This module centralizes the magic numbers used throughout the application.
"""

# Fractional ordering
ORDER_APPEND_GAP = 1000.0  # added to the last key when appending to a column
ORDER_REBALANCE_STEP = 1000.0  # spacing of keys after a column is renumbered

# Calendar
CALENDAR_CELL_COUNT = 42  # 6 full weeks
CALENDAR_CELL_TASK_LIMIT = 3  # more than this and a cell only shows a count

# List view filter value meaning "no filtering"
FILTER_ALL = "all"

# Priority rank for list sorting (lower sorts first)
PRIORITY_RANK = {"high": 0, "normal": 1, "low": 2}

# Notifications kept for the presentation layer
NOTIFICATION_HISTORY = 20

# Identity
MIN_PASSWORD_LENGTH = 6
MAX_FAILED_SIGN_INS = 5

# Default title for a subtask added from the task editor
DEFAULT_SUBTASK_TEXT = "New subtask"
