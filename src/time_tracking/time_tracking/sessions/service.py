from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Callable, ContextManager, Iterator, Optional

from ..attendance.calculator.base import AttendanceCalculator
from ..attendance.calculator.standard_calculator import StandardAttendanceCalculator
from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock
from ..common.datetime_utils import hours_between
from ..common.validators import optional_text, require_employee_id, require_non_empty
from ..core.enums import LocationStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..location.model import Location
from ..location.validator import LocationValidator, is_valid_coordinates
from ..schedules.model import WorkSchedule
from .model import CheckInPolicy, NewTimeEntry, SessionResult, TimeEntry
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)

LOCATION_REQUIRED_MESSAGE = "Location is required for check-in. Please enable GPS and try again."


class SessionManager:
    """Opens and closes time entries, one open entry per employee.

    Per employee: NONE -> check_in -> OPEN -> check_out -> NONE.

    Check-in and check-out for the same employee are serialized by an
    in-process lock; across processes the store's unique open-entry
    constraint makes the loser fail with ConflictError.
    """

    def __init__(
        self,
        entries: TimeEntryRepository,
        attendance: AttendanceRepository,
        validator: LocationValidator,
        clock: Clock,
        *,
        schedule: WorkSchedule,
        policy: Optional[CheckInPolicy] = None,
        calculator: Optional[AttendanceCalculator] = None,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._entries = entries
        self._attendance = attendance
        self._validator = validator
        self._clock = clock
        self._schedule = schedule
        self._policy = policy or CheckInPolicy()
        self._calculator = calculator or StandardAttendanceCalculator()
        self._transaction = transaction or nullcontext
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _employee_lock(self, employee_id: str) -> Iterator[None]:
        # [lock, holders]; removed once nobody holds or waits on it.
        with self._locks_guard:
            slot = self._locks.setdefault(employee_id, [threading.Lock(), 0])
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._locks_guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[employee_id]

    def get_active_entry(self, employee_id: str) -> Optional[TimeEntry]:
        return self._entries.find_open(require_employee_id(employee_id))

    def check_in(
        self,
        employee_id: str,
        *,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        employee_id = require_employee_id(employee_id)
        notes = optional_text(notes)

        with self._employee_lock(employee_id):
            with self._transaction():
                self._ensure_no_open_entry(employee_id)
                status, message, review = self._resolve_location(employee_id, location)

                if notes and message:
                    entry_notes = f"{notes} | Location: {message}"
                else:
                    entry_notes = notes or message or None

                entry = self._entries.create_open(
                    NewTimeEntry(
                        employee_id=employee_id,
                        check_in_time=self._clock.now(),
                        location_status=status,
                        check_in_location=location if location is not None and is_valid_coordinates(location) else None,
                        notes=entry_notes,
                        device_info=optional_text(device_info),
                        requires_manual_review=review,
                    )
                )

        logger.info(
            "check_in",
            extra={"employee_id": employee_id, "entry_id": entry.entry_id, "location_status": status.value},
        )
        return SessionResult(message=message or "Check-in successful", entry=entry)

    def check_in_without_location(
        self,
        employee_id: str,
        reason: str,
        *,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        employee_id = require_employee_id(employee_id)
        reason = require_non_empty(reason, "Reason for location unavailability")
        notes = optional_text(notes)

        with self._employee_lock(employee_id):
            with self._transaction():
                self._ensure_no_open_entry(employee_id)

                if self._policy.require_office_location and not self._policy.allow_location_fallback:
                    logger.warning("check_in_fallback_rejected", extra={"employee_id": employee_id})
                    raise ValidationError(LOCATION_REQUIRED_MESSAGE)

                fallback_note = f"Location unavailable: {reason}"
                if notes:
                    fallback_note = f"{fallback_note} | {notes}"

                entry = self._entries.create_open(
                    NewTimeEntry(
                        employee_id=employee_id,
                        check_in_time=self._clock.now(),
                        location_status=LocationStatus.UNAVAILABLE,
                        notes=fallback_note,
                        device_info=optional_text(device_info),
                        requires_manual_review=True,
                    )
                )

        logger.info(
            "check_in_fallback",
            extra={"employee_id": employee_id, "entry_id": entry.entry_id, "location_status": entry.location_status.value},
        )
        return SessionResult(
            message="Check-in successful without location. This entry will be reviewed by HR.",
            entry=entry,
        )

    def check_out(
        self,
        employee_id: str,
        *,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> SessionResult:
        """Close the open entry and upsert the day's attendance record.

        Both writes run in one transaction: a failed upsert rolls back the
        checkout instead of leaving a closed entry without its record.
        """

        employee_id = require_employee_id(employee_id)

        with self._employee_lock(employee_id):
            with self._transaction():
                active = self._entries.find_open(employee_id)
                if not active:
                    logger.info("check_out_without_session", extra={"employee_id": employee_id})
                    raise NotFoundError("No active check-in found for employee")

                if location is not None and not is_valid_coordinates(location):
                    raise ValidationError("Invalid location coordinates")

                now = self._clock.now()
                if now < active.check_in_time:
                    logger.warning(
                        "clock_behind_check_in",
                        extra={"employee_id": employee_id, "entry_id": active.entry_id},
                    )
                    now = active.check_in_time

                closed = self._entries.close(
                    entry_id=active.entry_id,
                    check_out_time=now,
                    check_out_location=location,
                    total_hours=hours_between(active.check_in_time, now),
                    notes=optional_text(notes) or active.notes,
                    device_info=optional_text(device_info) or active.device_info,
                )

                record = self._calculator.derive_record(closed, self._schedule)
                self._attendance.upsert(record)

        logger.info(
            "check_out",
            extra={"employee_id": employee_id, "entry_id": closed.entry_id, "work_date": record.work_date.isoformat()},
        )
        return SessionResult(message="Check-out successful", entry=closed, attendance_record=record)

    def _ensure_no_open_entry(self, employee_id: str) -> None:
        if self._entries.find_open(employee_id):
            logger.info("check_in_conflict", extra={"employee_id": employee_id})
            raise ConflictError("Employee is already checked in")

    def _resolve_location(self, employee_id: str, location: Optional[Location]) -> tuple[LocationStatus, str, bool]:
        """Returns (status, advisory message, requires_manual_review)."""

        policy = self._policy

        if location is None:
            if policy.require_office_location:
                logger.warning("check_in_location_missing", extra={"employee_id": employee_id})
                raise ValidationError(LOCATION_REQUIRED_MESSAGE)
            return LocationStatus.UNAVAILABLE, "", False

        check = self._validator.classify(location)
        message = check.message

        if policy.require_office_location:
            if check.status in (LocationStatus.INVALID, LocationStatus.REMOTE):
                logger.warning(
                    "check_in_location_rejected",
                    extra={"employee_id": employee_id, "location_status": check.status.value},
                )
                raise ValidationError(check.message)
            if check.status == LocationStatus.LOW_ACCURACY:
                message = "Check-in allowed but location accuracy is low"

        review = check.status in policy.review_statuses or (
            check.status == LocationStatus.NO_OFFICE_CONFIG and policy.review_unconfigured_office
        )
        return check.status, message, review
