from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import LocationStatus, SessionStatus
from ..location.model import Location


@dataclass(frozen=True)
class TimeEntry:
    """Thực thể miền (domain): Một phiên chấm công vào/ra."""

    entry_id: int
    employee_id: str
    check_in_time: datetime
    location_status: LocationStatus
    status: SessionStatus
    check_out_time: Optional[datetime] = None
    check_in_location: Optional[Location] = None
    check_out_location: Optional[Location] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None
    device_info: Optional[str] = None
    requires_manual_review: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.CHECKED_IN and self.check_out_time is None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "employee_id": self.employee_id,
            "check_in_time": self.check_in_time.isoformat(),
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "check_in_location": self.check_in_location.to_dict() if self.check_in_location else None,
            "check_out_location": self.check_out_location.to_dict() if self.check_out_location else None,
            "location_status": self.location_status.value,
            "total_hours": self.total_hours,
            "status": self.status.value,
            "notes": self.notes,
            "device_info": self.device_info,
            "requires_manual_review": self.requires_manual_review,
        }


@dataclass(frozen=True)
class NewTimeEntry:
    """Values for opening a session; the store assigns the id."""

    employee_id: str
    check_in_time: datetime
    location_status: LocationStatus
    check_in_location: Optional[Location] = None
    notes: Optional[str] = None
    device_info: Optional[str] = None
    requires_manual_review: bool = False


@dataclass(frozen=True)
class CheckInPolicy:
    require_office_location: bool = False
    allow_location_fallback: bool = False
    review_unconfigured_office: bool = False
    # Accepted check-ins with these statuses are flagged for HR review.
    review_statuses: frozenset = frozenset({LocationStatus.LOW_ACCURACY, LocationStatus.REMOTE, LocationStatus.INVALID})


@dataclass(frozen=True)
class SessionResult:
    message: str
    entry: TimeEntry
    attendance_record: Optional[AttendanceRecord] = None

    def to_dict(self) -> dict:
        out = {"time_entry": self.entry.to_dict()}
        if self.attendance_record is not None:
            out["attendance_record"] = self.attendance_record.to_dict()
        return out
