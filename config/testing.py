import os

from .config import db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

# Fixed values so tests do not depend on the environment.
TIME_TRACKING = {
    "OFFICE_LATITUDE": "10.7769",
    "OFFICE_LONGITUDE": "106.7009",
    "MAX_LOCATION_DISTANCE_METERS": "100",
    "REQUIRE_OFFICE_LOCATION": "false",
    "ALLOW_LOCATION_FALLBACK": "true",
    "STANDARD_WORK_HOURS": "8",
    "LATE_THRESHOLD_MINUTES": "15",
    "EARLY_LEAVE_THRESHOLD_MINUTES": "30",
    "SCHEDULED_START_TIME": "09:00",
    "SCHEDULED_END_TIME": "17:00",
    "WORK_TIMEZONE": "UTC",
}
