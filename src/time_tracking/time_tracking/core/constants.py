"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_MAX_LOCATION_DISTANCE_METERS = 100
DEFAULT_LOW_ACCURACY_THRESHOLD_METERS = 100
DEFAULT_STANDARD_WORK_HOURS = 8
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES = 30
DEFAULT_SCHEDULED_START_TIME = "09:00"
DEFAULT_SCHEDULED_END_TIME = "17:00"
DEFAULT_TIMEZONE = "UTC"

# Below this share of standard hours a completed day counts as partial.
PARTIAL_DAY_RATIO = 0.75

DEFAULT_ENTRIES_LIMIT = 50
