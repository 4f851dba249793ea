import os

# Raw engine options; parsed and validated once by TimeTrackingConfig.from_mapping().
TIME_TRACKING = {
    # 0,0 means no office is configured: check-ins are accepted from anywhere.
    "OFFICE_LATITUDE": os.getenv("OFFICE_LATITUDE", "0"),
    "OFFICE_LONGITUDE": os.getenv("OFFICE_LONGITUDE", "0"),
    "MAX_LOCATION_DISTANCE_METERS": os.getenv("MAX_LOCATION_DISTANCE_METERS", "100"),
    "LOW_ACCURACY_THRESHOLD_METERS": os.getenv("LOW_ACCURACY_THRESHOLD_METERS", "100"),
    "REQUIRE_OFFICE_LOCATION": os.getenv("REQUIRE_OFFICE_LOCATION", "false"),
    "ALLOW_LOCATION_FALLBACK": os.getenv("ALLOW_LOCATION_FALLBACK", "false"),
    "REVIEW_UNCONFIGURED_OFFICE": os.getenv("REVIEW_UNCONFIGURED_OFFICE", "false"),
    "STANDARD_WORK_HOURS": os.getenv("STANDARD_WORK_HOURS", "8"),
    "LATE_THRESHOLD_MINUTES": os.getenv("LATE_THRESHOLD_MINUTES", "15"),
    "EARLY_LEAVE_THRESHOLD_MINUTES": os.getenv("EARLY_LEAVE_THRESHOLD_MINUTES", "30"),
    "SCHEDULED_START_TIME": os.getenv("SCHEDULED_START_TIME", "09:00"),
    "SCHEDULED_END_TIME": os.getenv("SCHEDULED_END_TIME", "17:00"),
    "WORK_TIMEZONE": os.getenv("WORK_TIMEZONE", "UTC"),
}


def db_config_from_env(*, default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "time_tracking"),
    }
