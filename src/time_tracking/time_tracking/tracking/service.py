from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock
from ..common.datetime_utils import parse_date_range, parse_iso_date
from ..common.validators import require_employee_id
from ..core.constants import DEFAULT_ENTRIES_LIMIT
from ..core.enums import SessionStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..location.model import Location, LocationReport
from ..location.validator import LocationValidator
from ..reports.model import WorkHoursSummary
from ..reports.service import SummaryAggregator
from ..schedules.model import WorkSchedule
from ..sessions.model import SessionResult, TimeEntry
from ..sessions.repository import TimeEntryRepository
from ..sessions.service import SessionManager


@dataclass(frozen=True)
class EntriesPage:
    entries: Sequence[TimeEntry]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass(frozen=True)
class TrackingStatus:
    status: SessionStatus
    active_entry: Optional[TimeEntry]
    today: Optional[AttendanceRecord]

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "since": self.active_entry.check_in_time.isoformat() if self.active_entry else None,
            "active_entry": self.active_entry.to_dict() if self.active_entry else None,
            "today": self.today.to_dict() if self.today else None,
        }


class TimeTrackingService:
    """Use cases exposed to the transport layer.

    Dates arrive as YYYY-MM-DD strings and are validated here, before any
    store is queried.
    """

    def __init__(
        self,
        sessions: SessionManager,
        entries: TimeEntryRepository,
        attendance: AttendanceRepository,
        validator: LocationValidator,
        clock: Clock,
        *,
        schedule: WorkSchedule,
        aggregator: Optional[SummaryAggregator] = None,
    ):
        self._sessions = sessions
        self._entries = entries
        self._attendance = attendance
        self._validator = validator
        self._clock = clock
        self._schedule = schedule
        self._aggregator = aggregator or SummaryAggregator()

    def check_in(
        self,
        employee_id: str,
        *,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        return self._sessions.check_in(employee_id, location=location, notes=notes, device_info=device_info)

    def check_in_without_location(
        self,
        employee_id: str,
        reason: str,
        *,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        return self._sessions.check_in_without_location(employee_id, reason, notes=notes, device_info=device_info)

    def check_out(
        self,
        employee_id: str,
        *,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        return self._sessions.check_out(employee_id, location=location, notes=notes, device_info=device_info)

    def get_active_entry(self, employee_id: str) -> Optional[TimeEntry]:
        return self._sessions.get_active_entry(employee_id)

    def get_status(self, employee_id: str) -> TrackingStatus:
        employee_id = require_employee_id(employee_id)
        active = self._entries.find_open(employee_id)
        today = self._schedule.work_date(self._clock.now())
        return TrackingStatus(
            status=SessionStatus.CHECKED_IN if active else SessionStatus.CHECKED_OUT,
            active_entry=active,
            today=self._attendance.get_for_employee_and_date(employee_id, today),
        )

    def get_time_entries(
        self,
        employee_id: str,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = DEFAULT_ENTRIES_LIMIT,
        offset: int = 0,
    ) -> EntriesPage:
        employee_id = require_employee_id(employee_id)
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset must not be negative")

        since = self._day_start(parse_iso_date(start_date, "start date")) if start_date else None
        until = self._day_start(parse_iso_date(end_date, "end date") + timedelta(days=1)) if end_date else None

        entries = self._entries.list_for_employee(employee_id, since=since, until=until, limit=limit, offset=offset)
        total = self._entries.count_for_employee(employee_id, since=since, until=until)
        return EntriesPage(entries=list(entries), total=total, limit=limit, offset=offset)

    def get_attendance_record(self, employee_id: str, work_date: str) -> AttendanceRecord:
        employee_id = require_employee_id(employee_id)
        day = parse_iso_date(work_date)
        record = self._attendance.get_for_employee_and_date(employee_id, day)
        if not record:
            raise NotFoundError("No attendance record found for this date")
        return record

    def get_attendance_records(self, employee_id: str, start_date: str, end_date: str) -> Sequence[AttendanceRecord]:
        employee_id = require_employee_id(employee_id)
        start, end = parse_date_range(start_date, end_date)
        return list(self._attendance.list_range(employee_id, start_date=start, end_date=end))

    def get_work_hours_summary(self, employee_id: str, start_date: str, end_date: str) -> WorkHoursSummary:
        employee_id = require_employee_id(employee_id)
        start, end = parse_date_range(start_date, end_date)
        records = self._attendance.list_range(employee_id, start_date=start, end_date=end)
        return self._aggregator.summarize(records, employee_id=employee_id, start_date=start, end_date=end)

    def validate_location(self, location: Optional[Location]) -> LocationReport:
        return self._validator.report(location)

    def _day_start(self, day: date) -> datetime:
        return datetime.combine(day, datetime.min.time(), tzinfo=self._schedule.timezone)
