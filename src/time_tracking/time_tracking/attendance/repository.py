from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_range(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records with start_date <= work_date <= end_date, newest first."""

        raise NotImplementedError

    def upsert(self, record: AttendanceRecord) -> None:
        """Insert, or overwrite every derived field of the (employee, date) record."""

        raise NotImplementedError
