"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

API_PREFIX = "/api"

DEFAULT_GEOFENCE_RADIUS_M = 100
DEFAULT_LATE_TOLERANCE_MINUTES = 15
DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES = 15
DEFAULT_WORK_START = time(8, 0)
DEFAULT_WORK_END = time(17, 0)

# Synthetic full day written for leave-covered days.
FULL_DAY_CHECK_IN = time(8, 0)
FULL_DAY_CHECK_OUT = time(17, 0)
FULL_DAY_WORK_HOURS = 8.0

CORRECTION_MONTHLY_LIMIT = 2
CORRECTION_MAX_AGE_DAYS = 30
BREAK_TIME_CREDIT_HOURS = 1.0

DEFAULT_TOKEN_TTL_SECONDS = 60 * 60 * 24
