"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

CREDITS_PER_CHECKIN = 1
DEFAULT_TRANSACTION_ATTEMPTS = 5
DEFAULT_LOW_CREDIT_THRESHOLD = 3
DEFAULT_ADJUSTMENT_HISTORY_LIMIT = 20
DEFAULT_HISTORY_LIMIT = 200

RECEIPT_PREFIX = "RCP"
RECEIPT_MAX_DRAWS = 10

UNIVERSAL_COURSE_NAME = "All courses"
