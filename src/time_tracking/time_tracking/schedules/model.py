from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from ..core.constants import (
    DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_STANDARD_WORK_HOURS,
)


@dataclass(frozen=True)
class WorkSchedule:
    """Thực thể miền (domain): Lịch làm việc chuẩn áp dụng cho mọi ngày."""

    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    standard_hours: float = DEFAULT_STANDARD_WORK_HOURS
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    early_leave_threshold_minutes: int = DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("UTC"))

    def localize(self, moment: datetime) -> datetime:
        """Express a moment in the schedule's time zone.

        Naive datetimes are taken to already be local wall-clock time.
        """
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.timezone)
        return moment.astimezone(self.timezone)

    def work_date(self, moment: datetime) -> date:
        return self.localize(moment).date()

    def scheduled_start(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time, tzinfo=self.timezone)

    def scheduled_end(self, day: date) -> datetime:
        return datetime.combine(day, self.end_time, tzinfo=self.timezone)
