from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .common.datetime_utils import parse_clock_time
from .core import constants
from .core.exceptions import ValidationError
from .location.model import Location
from .location.validator import is_valid_coordinates
from .schedules.model import WorkSchedule

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"{name} must be a boolean, got {value!r}")


def _as_float(value: Any, name: str, *, minimum: float | None = None) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if minimum is not None and out < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")
    return out


def _as_int(value: Any, name: str) -> int:
    out = _as_float(value, name, minimum=0)
    if out != int(out):
        raise ValidationError(f"{name} must be a whole number")
    return int(out)


@dataclass(frozen=True)
class TimeTrackingConfig:
    """Immutable engine configuration, loaded once at startup."""

    office: Optional[Location] = None
    max_location_distance_meters: float = constants.DEFAULT_MAX_LOCATION_DISTANCE_METERS
    low_accuracy_threshold_meters: float = constants.DEFAULT_LOW_ACCURACY_THRESHOLD_METERS
    require_office_location: bool = False
    allow_location_fallback: bool = False
    review_unconfigured_office: bool = False
    schedule: WorkSchedule = field(default_factory=WorkSchedule)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "TimeTrackingConfig":
        lat = _as_float(raw.get("OFFICE_LATITUDE", 0), "OFFICE_LATITUDE")
        lon = _as_float(raw.get("OFFICE_LONGITUDE", 0), "OFFICE_LONGITUDE")
        office = None
        if not (lat == 0 and lon == 0):
            office = Location(latitude=lat, longitude=lon)
            if not is_valid_coordinates(office):
                raise ValidationError(f"Office location out of range: ({lat}, {lon})")

        tz_name = str(raw.get("WORK_TIMEZONE") or constants.DEFAULT_TIMEZONE)
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown WORK_TIMEZONE: {tz_name!r}") from e

        start = parse_clock_time(
            raw.get("SCHEDULED_START_TIME") or constants.DEFAULT_SCHEDULED_START_TIME, "SCHEDULED_START_TIME"
        )
        end = parse_clock_time(
            raw.get("SCHEDULED_END_TIME") or constants.DEFAULT_SCHEDULED_END_TIME, "SCHEDULED_END_TIME"
        )
        if end <= start:
            raise ValidationError("SCHEDULED_END_TIME must be after SCHEDULED_START_TIME")

        schedule = WorkSchedule(
            start_time=start,
            end_time=end,
            standard_hours=_as_float(
                raw.get("STANDARD_WORK_HOURS", constants.DEFAULT_STANDARD_WORK_HOURS),
                "STANDARD_WORK_HOURS",
                minimum=0,
            ),
            late_threshold_minutes=_as_int(
                raw.get("LATE_THRESHOLD_MINUTES", constants.DEFAULT_LATE_THRESHOLD_MINUTES),
                "LATE_THRESHOLD_MINUTES",
            ),
            early_leave_threshold_minutes=_as_int(
                raw.get("EARLY_LEAVE_THRESHOLD_MINUTES", constants.DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES),
                "EARLY_LEAVE_THRESHOLD_MINUTES",
            ),
            timezone=tz,
        )

        return cls(
            office=office,
            max_location_distance_meters=_as_float(
                raw.get("MAX_LOCATION_DISTANCE_METERS", constants.DEFAULT_MAX_LOCATION_DISTANCE_METERS),
                "MAX_LOCATION_DISTANCE_METERS",
                minimum=0,
            ),
            low_accuracy_threshold_meters=_as_float(
                raw.get("LOW_ACCURACY_THRESHOLD_METERS", constants.DEFAULT_LOW_ACCURACY_THRESHOLD_METERS),
                "LOW_ACCURACY_THRESHOLD_METERS",
                minimum=0,
            ),
            require_office_location=_as_bool(raw.get("REQUIRE_OFFICE_LOCATION", False), "REQUIRE_OFFICE_LOCATION"),
            allow_location_fallback=_as_bool(raw.get("ALLOW_LOCATION_FALLBACK", False), "ALLOW_LOCATION_FALLBACK"),
            review_unconfigured_office=_as_bool(
                raw.get("REVIEW_UNCONFIGURED_OFFICE", False), "REVIEW_UNCONFIGURED_OFFICE"
            ),
            schedule=schedule,
        )
