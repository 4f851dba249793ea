from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext

import pytest

from src.time_tracking.time_tracking.core.enums import AttendanceStatus, LocationStatus, SessionStatus
from src.time_tracking.time_tracking.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.time_tracking.time_tracking.location.model import Location
from src.time_tracking.time_tracking.location.validator import LocationValidator
from src.time_tracking.time_tracking.sessions.model import CheckInPolicy
from tests.helpers import OFFICE, InMemoryAttendance, at

# 0.01 degrees of latitude north of the office, ~1112m away
REMOTE = Location(latitude=10.7869, longitude=106.7009)
STRICT = CheckInPolicy(require_office_location=True)


class FailingAttendance(InMemoryAttendance):
    def upsert(self, record):
        raise RuntimeError("attendance store unavailable")


def test_check_in_then_check_out(make_manager, clock, entries, attendance):
    manager = make_manager()

    opened = manager.check_in("emp-1", location=OFFICE)
    assert opened.entry.status == SessionStatus.CHECKED_IN
    assert opened.entry.check_in_time == at(9, 0)

    clock.set(at(17, 30))
    result = manager.check_out("emp-1")

    assert result.message == "Check-out successful"
    assert result.entry.status == SessionStatus.CHECKED_OUT
    assert result.entry.total_hours == 8.5
    assert result.attendance_record.status == AttendanceStatus.PRESENT
    assert result.attendance_record.overtime_hours == 0.5
    assert attendance.upserts == 1
    assert manager.get_active_entry("emp-1") is None
    assert entries.rows[opened.entry.entry_id].check_out_time == at(17, 30)


def test_check_in_at_office_records_location_and_message(make_manager):
    result = make_manager().check_in("emp-1", location=OFFICE, notes="  morning  ")

    entry = result.entry
    assert result.message == "Check-in from office location (0m from office)"
    assert entry.location_status == LocationStatus.VALID
    assert entry.check_in_location == OFFICE
    assert entry.requires_manual_review is False
    assert entry.notes == "morning | Location: Check-in from office location (0m from office)"


def test_second_check_in_conflicts(make_manager, entries):
    manager = make_manager()
    manager.check_in("emp-1", location=OFFICE)

    with pytest.raises(ConflictError):
        manager.check_in("emp-1", location=OFFICE)

    assert len(entries.rows) == 1


def test_other_employees_are_independent(make_manager):
    manager = make_manager()
    manager.check_in("emp-1", location=OFFICE)
    manager.check_in("emp-2", location=OFFICE)

    assert manager.get_active_entry("emp-1").employee_id == "emp-1"
    assert manager.get_active_entry("emp-2").employee_id == "emp-2"


def test_check_out_without_open_entry(make_manager):
    with pytest.raises(NotFoundError, match="No active check-in found"):
        make_manager().check_out("emp-1")


def test_blank_employee_id_is_rejected(make_manager):
    with pytest.raises(ValidationError):
        make_manager().check_in("   ")


def test_check_in_without_location_when_not_required(make_manager):
    result = make_manager().check_in("emp-1")

    assert result.message == "Check-in successful"
    assert result.entry.location_status == LocationStatus.UNAVAILABLE
    assert result.entry.requires_manual_review is False
    assert result.entry.notes is None


def test_required_location_missing(make_manager, entries):
    with pytest.raises(ValidationError, match="Location is required for check-in"):
        make_manager(STRICT).check_in("emp-1")
    assert entries.rows == {}


def test_required_location_rejects_remote(make_manager, entries):
    with pytest.raises(ValidationError, match="Remote check-in detected"):
        make_manager(STRICT).check_in("emp-1", location=REMOTE)
    assert entries.rows == {}


def test_required_location_rejects_invalid_coordinates(make_manager):
    with pytest.raises(ValidationError, match="Invalid GPS coordinates"):
        make_manager(STRICT).check_in("emp-1", location=Location(latitude=120, longitude=0))


def test_required_location_accepts_low_accuracy_with_advisory(make_manager):
    fuzzy = Location(latitude=OFFICE.latitude, longitude=OFFICE.longitude, accuracy=250)
    result = make_manager(STRICT).check_in("emp-1", location=fuzzy)

    assert result.message == "Check-in allowed but location accuracy is low"
    assert result.entry.location_status == LocationStatus.LOW_ACCURACY
    assert result.entry.requires_manual_review is True


def test_near_office_is_accepted_without_review(make_manager):
    # ~150m from the office
    near = Location(latitude=OFFICE.latitude + 0.00135, longitude=OFFICE.longitude)
    result = make_manager(STRICT).check_in("emp-1", location=near)

    assert result.entry.location_status == LocationStatus.NEAR_OFFICE
    assert result.entry.requires_manual_review is False


def test_remote_is_accepted_and_flagged_when_not_required(make_manager):
    result = make_manager().check_in("emp-1", location=REMOTE)

    assert result.entry.location_status == LocationStatus.REMOTE
    assert result.entry.requires_manual_review is True
    assert result.message == "Remote check-in detected (1112m from office)"


def test_invalid_location_is_flagged_but_not_stored(make_manager):
    result = make_manager().check_in("emp-1", location=Location(latitude=0, longitude=200))

    assert result.entry.location_status == LocationStatus.INVALID
    assert result.entry.check_in_location is None
    assert result.entry.requires_manual_review is True


def test_unconfigured_office_accepts_anywhere(make_manager):
    result = make_manager(validator=LocationValidator(None, 100)).check_in("emp-1", location=REMOTE)

    assert result.entry.location_status == LocationStatus.NO_OFFICE_CONFIG
    assert result.entry.requires_manual_review is False


def test_unconfigured_office_review_is_a_policy_switch(make_manager):
    policy = CheckInPolicy(review_unconfigured_office=True)
    manager = make_manager(policy, validator=LocationValidator(None, 100))

    assert manager.check_in("emp-1", location=REMOTE).entry.requires_manual_review is True


def test_fallback_check_in_is_flagged_for_review(make_manager):
    policy = CheckInPolicy(require_office_location=True, allow_location_fallback=True)
    result = make_manager(policy).check_in_without_location("emp-1", "GPS disabled", notes="bus was late")

    assert result.message == "Check-in successful without location. This entry will be reviewed by HR."
    assert result.entry.location_status == LocationStatus.UNAVAILABLE
    assert result.entry.requires_manual_review is True
    assert result.entry.check_in_location is None
    assert result.entry.notes == "Location unavailable: GPS disabled | bus was late"


def test_fallback_allowed_when_location_not_required(make_manager):
    result = make_manager().check_in_without_location("emp-1", "indoors")
    assert result.entry.notes == "Location unavailable: indoors"


def test_fallback_rejected_by_policy(make_manager, entries):
    with pytest.raises(ValidationError, match="Location is required"):
        make_manager(STRICT).check_in_without_location("emp-1", "GPS disabled")
    assert entries.rows == {}


def test_fallback_requires_reason(make_manager):
    with pytest.raises(ValidationError, match="Reason"):
        make_manager().check_in_without_location("emp-1", "   ")


def test_fallback_conflicts_with_open_entry(make_manager):
    manager = make_manager()
    manager.check_in("emp-1", location=OFFICE)

    with pytest.raises(ConflictError):
        manager.check_in_without_location("emp-1", "GPS disabled")


def test_check_out_rejects_invalid_coordinates(make_manager, clock, attendance):
    manager = make_manager()
    manager.check_in("emp-1", location=OFFICE)
    clock.set(at(17, 0))

    with pytest.raises(ValidationError, match="Invalid location coordinates"):
        manager.check_out("emp-1", location=Location(latitude=-91, longitude=0))

    assert manager.get_active_entry("emp-1") is not None
    assert attendance.upserts == 0


def test_check_out_records_location_and_keeps_check_in_notes(make_manager, clock):
    manager = make_manager()
    manager.check_in("emp-1", notes="opening shift", device_info="pixel")
    clock.set(at(17, 0))

    closed = manager.check_out("emp-1", location=OFFICE).entry

    assert closed.check_out_location == OFFICE
    assert closed.notes == "opening shift"
    assert closed.device_info == "pixel"


def test_check_out_notes_replace_check_in_notes(make_manager, clock):
    manager = make_manager()
    manager.check_in("emp-1", notes="opening shift")
    clock.set(at(17, 0))

    assert manager.check_out("emp-1", notes="closing").entry.notes == "closing"


def test_clock_behind_check_in_yields_zero_hours(make_manager, clock):
    manager = make_manager()
    manager.check_in("emp-1")
    clock.set(at(8, 30))

    result = manager.check_out("emp-1")

    assert result.entry.total_hours == 0
    assert result.entry.check_out_time == at(9, 0)


def test_failed_attendance_upsert_rolls_back_check_out(make_manager, clock, entries):
    manager = make_manager(attendance=FailingAttendance())
    opened = manager.check_in("emp-1", location=OFFICE)
    clock.set(at(17, 0))

    with pytest.raises(RuntimeError):
        manager.check_out("emp-1")

    assert entries.rows[opened.entry.entry_id].status == SessionStatus.CHECKED_IN
    assert manager.get_active_entry("emp-1") is not None


def test_check_out_on_same_day_overwrites_record(make_manager, clock, attendance):
    manager = make_manager()
    manager.check_in("emp-1")
    clock.set(at(12, 0))
    manager.check_out("emp-1")
    clock.set(at(13, 0))
    manager.check_in("emp-1")
    clock.set(at(17, 0))
    manager.check_out("emp-1")

    assert attendance.upserts == 2
    assert len(attendance.rows) == 1
    record = next(iter(attendance.rows.values()))
    assert record.check_in_time == at(13, 0)
    assert record.total_hours == 4


def _race(fn, n):
    barrier = threading.Barrier(n)

    def attempt(i):
        barrier.wait()
        try:
            fn(i)
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(attempt, range(n)))


def test_concurrent_check_ins_open_one_entry(make_manager, entries):
    manager = make_manager()

    outcomes = _race(lambda i: manager.check_in("emp-1", notes=f"attempt {i}"), 8)

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7
    assert len(entries.rows) == 1


def test_concurrent_check_ins_across_managers_open_one_entry(make_manager, entries):
    # separate managers do not share locks, only the store
    managers = [make_manager(transaction=nullcontext) for _ in range(6)]

    outcomes = _race(lambda i: managers[i].check_in("emp-1"), 6)

    assert outcomes.count("ok") == 1
    assert len([e for e in entries.rows.values() if e.is_open]) == 1


def test_total_hours_are_rounded_elapsed_hours(make_manager, clock):
    manager = make_manager()
    manager.check_in("emp-1")
    clock.set(at(17, 20))

    result = manager.check_out("emp-1")

    assert result.entry.total_hours == 8.33
    assert result.attendance_record.regular_hours == 8
    assert result.attendance_record.overtime_hours == 0.33


def test_employee_locks_are_released_after_use(make_manager, clock):
    manager = make_manager()
    for i in range(5):
        manager.check_in(f"emp-{i}")
    clock.set(at(17, 0))
    manager.check_out("emp-0")
    with pytest.raises(ConflictError):
        manager.check_in("emp-1")

    assert manager._locks == {}
