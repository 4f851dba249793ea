from __future__ import annotations

from typing import Optional

import pytest

from src.time_tracking.time_tracking.location.validator import LocationValidator
from src.time_tracking.time_tracking.schedules.model import WorkSchedule
from src.time_tracking.time_tracking.sessions.model import CheckInPolicy
from src.time_tracking.time_tracking.sessions.service import SessionManager
from src.time_tracking.time_tracking.tracking.service import TimeTrackingService
from tests.helpers import OFFICE, UTC, FixedClock, InMemoryAttendance, InMemoryTimeEntries, at, snapshot_transaction


@pytest.fixture
def clock():
    return FixedClock(at(9, 0))


@pytest.fixture
def entries():
    return InMemoryTimeEntries()


@pytest.fixture
def attendance():
    return InMemoryAttendance()


@pytest.fixture
def schedule():
    return WorkSchedule(timezone=UTC)


@pytest.fixture
def validator():
    return LocationValidator(OFFICE, 100)


@pytest.fixture
def make_manager(entries, attendance, validator, clock, schedule):
    def _make(policy: Optional[CheckInPolicy] = None, **kwargs) -> SessionManager:
        return SessionManager(
            kwargs.pop("entries", entries),
            kwargs.pop("attendance", attendance),
            kwargs.pop("validator", validator),
            clock,
            schedule=schedule,
            policy=policy,
            transaction=kwargs.pop("transaction", snapshot_transaction(entries, attendance)),
            **kwargs,
        )

    return _make


@pytest.fixture
def service(make_manager, entries, attendance, validator, clock, schedule):
    return TimeTrackingService(make_manager(), entries, attendance, validator, clock, schedule=schedule)
