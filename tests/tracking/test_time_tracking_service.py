from __future__ import annotations

from datetime import date

import pytest

from src.time_tracking.time_tracking.core.enums import LocationStatus, SessionStatus
from src.time_tracking.time_tracking.core.exceptions import NotFoundError, ValidationError
from src.time_tracking.time_tracking.location.model import Location
from tests.helpers import OFFICE, at


def work_day(service, clock, day: date, start=(9, 0), end=(17, 0), employee_id="emp-1"):
    clock.set(at(*start, day=day))
    service.check_in(employee_id, location=OFFICE)
    clock.set(at(*end, day=day))
    return service.check_out(employee_id)


def test_status_follows_session(service, clock):
    assert service.get_status("emp-1").status == SessionStatus.CHECKED_OUT

    service.check_in("emp-1", location=OFFICE)
    status = service.get_status("emp-1")
    assert status.status == SessionStatus.CHECKED_IN
    assert status.to_dict()["since"] == at(9, 0).isoformat()
    assert status.today is None

    clock.set(at(17, 0))
    service.check_out("emp-1")
    status = service.get_status("emp-1")
    assert status.status == SessionStatus.CHECKED_OUT
    assert status.today.total_hours == 8


def test_get_attendance_record(service, clock):
    work_day(service, clock, date(2026, 3, 2))

    record = service.get_attendance_record("emp-1", "2026-03-02")

    assert record.work_date == date(2026, 3, 2)
    assert record.to_dict()["date"] == "2026-03-02"


def test_missing_attendance_record(service):
    with pytest.raises(NotFoundError, match="No attendance record found for this date"):
        service.get_attendance_record("emp-1", "2026-03-02")


@pytest.mark.parametrize("value", ["02/03/2026", "2026-3-2", "2026-02-30", ""])
def test_malformed_date_is_rejected(service, value):
    with pytest.raises(ValidationError):
        service.get_attendance_record("emp-1", value)


def test_date_range_requires_both_ends(service):
    with pytest.raises(ValidationError, match="required"):
        service.get_attendance_records("emp-1", "2026-03-01", None)


def test_date_range_rejects_reversed_bounds(service):
    with pytest.raises(ValidationError, match="must not be after"):
        service.get_work_hours_summary("emp-1", "2026-03-05", "2026-03-01")


def test_attendance_records_newest_first(service, clock):
    for d in (2, 3, 4):
        work_day(service, clock, date(2026, 3, d))

    records = service.get_attendance_records("emp-1", "2026-03-03", "2026-03-04")

    assert [r.work_date.day for r in records] == [4, 3]


def test_work_hours_summary(service, clock):
    work_day(service, clock, date(2026, 3, 2))
    work_day(service, clock, date(2026, 3, 3), end=(18, 30))
    work_day(service, clock, date(2026, 3, 4), start=(9, 45))
    work_day(service, clock, date(2026, 3, 4), start=(9, 0), employee_id="emp-2")

    summary = service.get_work_hours_summary("emp-1", "2026-03-01", "2026-03-31")

    assert summary.total_hours == 24.75
    assert summary.overtime_hours == 1.5
    assert summary.total_days == 3
    assert summary.present_days == 2
    assert summary.late_days == 1
    assert summary.average_hours_per_day == 12.38
    assert summary.to_dict()["period"] == "2026-03-01 to 2026-03-31"


def test_time_entries_page(service, clock):
    for d in (2, 3, 4, 5):
        work_day(service, clock, date(2026, 3, d))

    page = service.get_time_entries("emp-1", limit=2, offset=1)

    assert page.total == 4
    assert [e.check_in_time.day for e in page.entries] == [4, 3]


def test_time_entries_date_bounds_are_inclusive(service, clock):
    for d in (2, 3, 4, 5):
        work_day(service, clock, date(2026, 3, d))

    page = service.get_time_entries("emp-1", start_date="2026-03-03", end_date="2026-03-04")

    assert page.total == 2
    assert [e.check_in_time.day for e in page.entries] == [4, 3]


def test_time_entries_rejects_bad_paging(service):
    with pytest.raises(ValidationError):
        service.get_time_entries("emp-1", limit=0)
    with pytest.raises(ValidationError):
        service.get_time_entries("emp-1", offset=-1)


def test_validate_location(service):
    report = service.validate_location(Location(latitude=OFFICE.latitude, longitude=OFFICE.longitude, accuracy=5))

    assert report.is_valid is True
    assert report.status == LocationStatus.VALID
    assert report.distance == 0
    assert report.recommendations == ["Location verified - you are at the office"]


def test_time_entries_total_counts_beyond_page(service, clock):
    for d in (2, 3, 4, 5, 6):
        work_day(service, clock, date(2026, 3, d))

    page = service.get_time_entries("emp-1", start_date="2026-03-03", limit=2)

    assert page.total == 4
    assert [e.check_in_time.day for e in page.entries] == [6, 5]
    assert page.to_dict()["limit"] == 2
