from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from ..core.exceptions import ValidationError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HH_MM = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def parse_iso_date(value: str | date, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name}: {value}") from e


def parse_date_range(start: str, end: str) -> tuple[date, date]:
    if not start or not end:
        raise ValidationError("Start date and end date are required")
    start_date = parse_iso_date(start, "start date")
    end_date = parse_iso_date(end, "end date")
    if start_date > end_date:
        raise ValidationError("Start date must not be after end date")
    return start_date, end_date


def parse_clock_time(value: str | time, field_name: str = "time") -> time:
    """Parse HH:MM (or HH:MM:SS) into time."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not _HH_MM.match(value.strip()):
        raise ValidationError(f"Invalid {field_name}: {value!r}. Use HH:MM")
    parts = [int(p) for p in value.strip().split(":")]
    try:
        return time(*parts)
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from e


def round_hours(value: float) -> float:
    """Round half-up to 2 decimal places."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def hours_between(start: datetime, end: datetime) -> float:
    return round_hours((end - start).total_seconds() / 3600)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored; 0 when end is not after start."""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)
