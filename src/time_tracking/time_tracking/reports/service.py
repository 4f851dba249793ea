from __future__ import annotations

from datetime import date
from typing import Iterable

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import round_hours
from ..core.enums import AttendanceStatus
from .model import WorkHoursSummary


class SummaryAggregator:
    """Rolls attendance records of one employee into a period summary."""

    def summarize(
        self,
        records: Iterable[AttendanceRecord],
        *,
        employee_id: str,
        start_date: date,
        end_date: date,
    ) -> WorkHoursSummary:
        total = 0.0
        regular = 0.0
        overtime = 0.0
        total_days = 0
        present_days = 0
        late_days = 0

        for r in records:
            total_days += 1
            total += r.total_hours
            regular += r.regular_hours
            overtime += r.overtime_hours
            if r.status == AttendanceStatus.PRESENT:
                present_days += 1
            if r.late_minutes > 0:
                late_days += 1

        total = round_hours(total)
        return WorkHoursSummary(
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            total_hours=total,
            regular_hours=round_hours(regular),
            overtime_hours=round_hours(overtime),
            total_days=total_days,
            present_days=present_days,
            absent_days=total_days - present_days,
            late_days=late_days,
            average_hours_per_day=round_hours(total / present_days) if present_days > 0 else 0.0,
        )
