from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class WorkHoursSummary:
    """Read-model: tổng hợp giờ làm trong một khoảng ngày (không lưu CSDL)."""

    employee_id: str
    start_date: date
    end_date: date
    total_hours: float
    regular_hours: float
    overtime_hours: float
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    average_hours_per_day: float

    @property
    def period(self) -> str:
        return f"{self.start_date:%Y-%m-%d} to {self.end_date:%Y-%m-%d}"

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "period": self.period,
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "total_days": self.total_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "late_days": self.late_days,
            "average_hours_per_day": self.average_hours_per_day,
        }
