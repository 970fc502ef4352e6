"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_BASE_DEBT_UNIT = 10_000
DEFAULT_TIMEZONE = "Africa/Lagos"
DEFAULT_LIST_LIMIT = 200

DAILY_CATEGORIES = frozenset({"daily", "daily_medical"})
HOLIDAY_CATEGORIES = frozenset({"holiday"})

FAST_TRACK_SIGN_OUT = "sign_out"
FAST_TRACK_SIGN_IN = "sign_in"
