from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time, timezone
from typing import Optional

from src.time_tracking.time_tracking.attendance.model import AttendanceRecord
from src.time_tracking.time_tracking.core.enums import SessionStatus
from src.time_tracking.time_tracking.core.exceptions import ConflictError, NotFoundError
from src.time_tracking.time_tracking.location.model import Location
from src.time_tracking.time_tracking.sessions.model import NewTimeEntry, TimeEntry

UTC = timezone.utc
OFFICE = Location(latitude=10.7769, longitude=106.7009)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now


class InMemoryTimeEntries:
    def __init__(self):
        self.rows: dict[int, TimeEntry] = {}
        self._id = 0
        self._lock = threading.Lock()

    def find_open(self, employee_id: str) -> Optional[TimeEntry]:
        for e in self.rows.values():
            if e.employee_id == employee_id and e.status == SessionStatus.CHECKED_IN:
                return e
        return None

    def create_open(self, entry: NewTimeEntry) -> TimeEntry:
        # Same guarantee as the unique open-entry index in MySQL.
        with self._lock:
            for e in self.rows.values():
                if e.employee_id == entry.employee_id and e.status == SessionStatus.CHECKED_IN:
                    raise ConflictError("Employee is already checked in")
            self._id += 1
            row = TimeEntry(
                entry_id=self._id,
                employee_id=entry.employee_id,
                check_in_time=entry.check_in_time,
                location_status=entry.location_status,
                status=SessionStatus.CHECKED_IN,
                check_in_location=entry.check_in_location,
                notes=entry.notes,
                device_info=entry.device_info,
                requires_manual_review=entry.requires_manual_review,
            )
            self.rows[row.entry_id] = row
            return row

    def close(self, *, entry_id, check_out_time, check_out_location, total_hours, notes, device_info) -> TimeEntry:
        row = self.rows.get(entry_id)
        if not row or row.status != SessionStatus.CHECKED_IN:
            raise NotFoundError("No active check-in found for employee")
        row = replace(
            row,
            check_out_time=check_out_time,
            check_out_location=check_out_location,
            total_hours=total_hours,
            status=SessionStatus.CHECKED_OUT,
            notes=notes,
            device_info=device_info,
        )
        self.rows[entry_id] = row
        return row

    def _matching(self, employee_id: str, since, until):
        items = [
            e
            for e in self.rows.values()
            if e.employee_id == employee_id
            and (since is None or e.check_in_time >= since)
            and (until is None or e.check_in_time < until)
        ]
        items.sort(key=lambda e: (e.check_in_time, e.entry_id), reverse=True)
        return items

    def list_for_employee(self, employee_id: str, *, since=None, until=None, limit=None, offset=0):
        items = self._matching(employee_id, since, until)[offset:]
        return items if limit is None else items[:limit]

    def count_for_employee(self, employee_id: str, *, since=None, until=None) -> int:
        return len(self._matching(employee_id, since, until))


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[tuple[str, date], AttendanceRecord] = {}
        self.upserts = 0

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return self.rows.get((employee_id, work_date))

    def list_range(self, employee_id: str, *, start_date: date, end_date: date):
        items = [
            r for (emp, d), r in self.rows.items() if emp == employee_id and start_date <= d <= end_date
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items

    def upsert(self, record: AttendanceRecord) -> None:
        self.upserts += 1
        self.rows[(record.employee_id, record.work_date)] = record


def snapshot_transaction(*stores):
    """Fake transaction: restores every store's rows when the block raises."""

    @contextmanager
    def _tx():
        saved = [dict(s.rows) for s in stores]
        try:
            yield
        except Exception:
            for s, rows in zip(stores, saved):
                s.rows.clear()
                s.rows.update(rows)
            raise

    return _tx


def at(hour: int, minute: int = 0, day: date = date(2026, 3, 2)) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)


