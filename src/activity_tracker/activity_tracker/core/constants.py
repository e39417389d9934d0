"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SUM_TOLERANCE = 0.01
MIN_ALLOCATION = 0.1
MAX_ALLOCATION = 1.0
ALLOCATION_STEP_DIGITS = 1

INTERNAL_CLIENT = "interne"

MIN_PASSWORD_LENGTH = 6
DEFAULT_SESSION_DAYS = 7
DEFAULT_RESET_TOKEN_MAX_AGE = 3600
