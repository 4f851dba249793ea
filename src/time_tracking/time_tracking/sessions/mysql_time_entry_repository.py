from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import DatabaseError, IntegrityError

from ..core.enums import LocationStatus, SessionStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    is_duplicate_key,
    is_lock_conflict,
    location_from_json,
    location_to_json,
    to_db_datetime,
)
from ..location.model import Location
from .model import NewTimeEntry, TimeEntry
from .repository import TimeEntryRepository

_COLUMNS = """
    entry_id, employee_id, check_in_time, check_out_time, check_in_location, check_out_location,
    location_status, total_hours, status, notes, device_info, requires_manual_review, created_at, updated_at
"""


def _row_to_entry(r: dict) -> TimeEntry:
    total = r.get("total_hours")
    return TimeEntry(
        entry_id=int(r["entry_id"]),
        employee_id=str(r["employee_id"]),
        check_in_time=from_db_datetime(r["check_in_time"]),
        check_out_time=from_db_datetime(r.get("check_out_time")),
        check_in_location=location_from_json(r.get("check_in_location")),
        check_out_location=location_from_json(r.get("check_out_location")),
        location_status=LocationStatus(r["location_status"]),
        total_hours=float(total) if total is not None else None,
        status=SessionStatus(r["status"]),
        notes=r.get("notes"),
        device_info=r.get("device_info"),
        requires_manual_review=bool(r.get("requires_manual_review")),
        created_at=from_db_datetime(r.get("created_at")),
        updated_at=from_db_datetime(r.get("updated_at")),
    )


def _range_filter(employee_id: str, since: Optional[datetime], until: Optional[datetime]) -> tuple[str, list]:
    clauses = ["employee_id=%s"]
    params: list[object] = [employee_id]
    if since is not None:
        clauses.append("check_in_time >= %s")
        params.append(to_db_datetime(since))
    if until is not None:
        clauses.append("check_in_time < %s")
        params.append(to_db_datetime(until))
    return " AND ".join(clauses), params


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_open(self, employee_id: str) -> Optional[TimeEntry]:
        # Row stays locked until the surrounding transaction() commits.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE employee_id=%s AND status=%s
                ORDER BY check_in_time DESC
                LIMIT 1
                FOR UPDATE
                """,
                (employee_id, SessionStatus.CHECKED_IN.value),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def create_open(self, entry: NewTimeEntry) -> TimeEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO time_entries(
                        employee_id, check_in_time, check_in_location, location_status,
                        status, notes, device_info, requires_manual_review
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        entry.employee_id,
                        to_db_datetime(entry.check_in_time),
                        location_to_json(entry.check_in_location),
                        entry.location_status.value,
                        SessionStatus.CHECKED_IN.value,
                        entry.notes,
                        entry.device_info,
                        int(entry.requires_manual_review),
                    ),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    raise ConflictError("Employee is already checked in") from e
                raise
            except DatabaseError as e:
                # Two first check-ins racing on the same index gap end in a deadlock.
                if is_lock_conflict(e):
                    raise ConflictError("Employee is already checked in") from e
                raise
            entry_id = int(cur.lastrowid)

            cur.execute(f"SELECT {_COLUMNS} FROM time_entries WHERE entry_id=%s", (entry_id,))
            return _row_to_entry(fetchone(cur))

    def close(
        self,
        *,
        entry_id: int,
        check_out_time: datetime,
        check_out_location: Optional[Location],
        total_hours: float,
        notes: Optional[str],
        device_info: Optional[str],
    ) -> TimeEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET check_out_time=%s, check_out_location=%s, total_hours=%s, status=%s, notes=%s, device_info=%s
                WHERE entry_id=%s AND status=%s
                """,
                (
                    to_db_datetime(check_out_time),
                    location_to_json(check_out_location),
                    total_hours,
                    SessionStatus.CHECKED_OUT.value,
                    notes,
                    device_info,
                    int(entry_id),
                    SessionStatus.CHECKED_IN.value,
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError("No active check-in found for employee")

            cur.execute(f"SELECT {_COLUMNS} FROM time_entries WHERE entry_id=%s", (int(entry_id),))
            return _row_to_entry(fetchone(cur))

    def list_for_employee(
        self,
        employee_id: str,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[TimeEntry]:
        where, params = _range_filter(employee_id, since, until)
        page = ""
        if limit is not None:
            page = "LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE {where}
                ORDER BY check_in_time DESC, entry_id DESC
                {page}
                """,
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def count_for_employee(
        self,
        employee_id: str,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        where, params = _range_filter(employee_id, since, until)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM time_entries WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0
