from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import hours_between, round_hours, whole_minutes_between
from ...core.constants import PARTIAL_DAY_RATIO
from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule
from ...sessions.model import TimeEntry
from ..model import AttendanceRecord
from .base import AttendanceCalculator


def late_minutes(check_in: Optional[datetime], schedule: WorkSchedule) -> int:
    if check_in is None:
        return 0
    local = schedule.localize(check_in)
    return whole_minutes_between(schedule.scheduled_start(local.date()), local)


def early_leave_minutes(check_out: Optional[datetime], schedule: WorkSchedule) -> int:
    if check_out is None:
        return 0
    local = schedule.localize(check_out)
    return whole_minutes_between(local, schedule.scheduled_end(local.date()))


def decide_status(
    *,
    check_in: Optional[datetime],
    check_out: Optional[datetime],
    total_hours: float,
    late: int,
    early: int,
    schedule: WorkSchedule,
) -> AttendanceStatus:
    """First matching rule wins."""

    if check_in is None:
        return AttendanceStatus.ABSENT
    if check_out is None:
        return AttendanceStatus.PARTIAL
    if late > schedule.late_threshold_minutes:
        return AttendanceStatus.LATE
    if early > schedule.early_leave_threshold_minutes:
        return AttendanceStatus.EARLY_LEAVE
    if total_hours < schedule.standard_hours * PARTIAL_DAY_RATIO:
        return AttendanceStatus.PARTIAL
    return AttendanceStatus.PRESENT


class StandardAttendanceCalculator(AttendanceCalculator):
    """Standard rule: hours up to the standard day are regular, the rest overtime."""

    def derive_record(self, entry: TimeEntry, schedule: WorkSchedule) -> AttendanceRecord:
        check_in = entry.check_in_time
        check_out = entry.check_out_time

        total = entry.total_hours
        if total is None:
            total = hours_between(check_in, check_out) if check_in and check_out else 0.0

        late = late_minutes(check_in, schedule)
        early = early_leave_minutes(check_out, schedule)

        return AttendanceRecord(
            employee_id=entry.employee_id,
            # Keyed by the check-in day so a shift past midnight stays on one record.
            work_date=schedule.work_date(check_in),
            status=decide_status(
                check_in=check_in,
                check_out=check_out,
                total_hours=total,
                late=late,
                early=early,
                schedule=schedule,
            ),
            check_in_time=check_in,
            check_out_time=check_out,
            total_hours=round_hours(total),
            regular_hours=round_hours(min(total, schedule.standard_hours)),
            overtime_hours=round_hours(max(0.0, total - schedule.standard_hours)),
            break_time=0,
            late_minutes=late,
            early_leave_minutes=early,
        )
