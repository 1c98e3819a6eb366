"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Absolute difference above which a stored split rate is rewritten.
SPLIT_TOLERANCE = 0.005

# Upper bound for documents written in one grouped batch.
WRITE_BATCH_LIMIT = 450

DEFAULT_RECALC_PARALLELISM = 4
DEFAULT_SCHEDULE_DAYS = 7
DEFAULT_HOURS_WORKED = 8

# Target stage accepted by move_subtask to complete a sub-task.
DONE_STAGE = "DONE"

ORGANIZATION_HEADER = "X-Organization-ID"
