from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Mapping, Optional

from .attendance.calculator.standard_calculator import StandardAttendanceCalculator
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .common.clock import Clock, SystemClock
from .database.connection import DatabaseConnection, DBConfig
from .database.mysql_base import transaction
from .location.validator import LocationValidator
from .reports.service import SummaryAggregator
from .sessions.model import CheckInPolicy
from .sessions.mysql_time_entry_repository import MySQLTimeEntryRepository
from .sessions.service import SessionManager
from .settings import TimeTrackingConfig
from .tracking.service import TimeTrackingService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    config: TimeTrackingConfig

    entries_repo: MySQLTimeEntryRepository
    attendance_repo: MySQLAttendanceRepository

    location_validator: LocationValidator
    session_manager: SessionManager
    tracking_service: TimeTrackingService


def build_container(
    *,
    db_config: dict,
    time_tracking: Mapping[str, Any],
    clock: Optional[Clock] = None,
) -> Container:
    config = TimeTrackingConfig.from_mapping(time_tracking)
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))
    clock = clock or SystemClock(config.schedule.timezone)

    entries_repo = MySQLTimeEntryRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    location_validator = LocationValidator(
        config.office,
        config.max_location_distance_meters,
        low_accuracy_threshold_meters=config.low_accuracy_threshold_meters,
    )
    session_manager = SessionManager(
        entries_repo,
        attendance_repo,
        location_validator,
        clock,
        schedule=config.schedule,
        policy=CheckInPolicy(
            require_office_location=config.require_office_location,
            allow_location_fallback=config.allow_location_fallback,
            review_unconfigured_office=config.review_unconfigured_office,
        ),
        calculator=StandardAttendanceCalculator(),
        transaction=partial(transaction, conn),
    )
    tracking_service = TimeTrackingService(
        session_manager,
        entries_repo,
        attendance_repo,
        location_validator,
        clock,
        schedule=config.schedule,
        aggregator=SummaryAggregator(),
    )

    return Container(
        conn=conn,
        config=config,
        entries_repo=entries_repo,
        attendance_repo=attendance_repo,
        location_validator=location_validator,
        session_manager=session_manager,
        tracking_service=tracking_service,
    )
