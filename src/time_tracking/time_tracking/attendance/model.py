from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công theo ngày.

    Unique by (employee_id, work_date); always derived from a completed time entry.
    """

    employee_id: str
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    break_time: int = 0
    late_minutes: int = 0
    early_leave_minutes: int = 0

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "check_in_time": self.check_in_time.isoformat() if self.check_in_time else None,
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "break_time": self.break_time,
            "status": self.status.value,
            "late_minutes": self.late_minutes,
            "early_leave_minutes": self.early_leave_minutes,
        }
