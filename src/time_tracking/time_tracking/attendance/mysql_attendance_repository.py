from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    employee_id, work_date, check_in_time, check_out_time, total_hours, regular_hours, overtime_hours,
    break_time, status, late_minutes, early_leave_minutes
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        employee_id=str(r["employee_id"]),
        work_date=r["work_date"],
        check_in_time=from_db_datetime(r.get("check_in_time")),
        check_out_time=from_db_datetime(r.get("check_out_time")),
        total_hours=float(r.get("total_hours") or 0),
        regular_hours=float(r.get("regular_hours") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        break_time=int(r.get("break_time") or 0),
        status=AttendanceStatus(r["status"]),
        late_minutes=int(r.get("late_minutes") or 0),
        early_leave_minutes=int(r.get("early_leave_minutes") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date=%s
                """,
                (employee_id, work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_range(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (employee_id, start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def upsert(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, work_date, check_in_time, check_out_time, total_hours, regular_hours,
                    overtime_hours, break_time, status, late_minutes, early_leave_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    total_hours=VALUES(total_hours),
                    regular_hours=VALUES(regular_hours),
                    overtime_hours=VALUES(overtime_hours),
                    break_time=VALUES(break_time),
                    status=VALUES(status),
                    late_minutes=VALUES(late_minutes),
                    early_leave_minutes=VALUES(early_leave_minutes)
                """,
                (
                    record.employee_id,
                    record.work_date,
                    to_db_datetime(record.check_in_time),
                    to_db_datetime(record.check_out_time),
                    record.total_hours,
                    record.regular_hours,
                    record.overtime_hours,
                    record.break_time,
                    record.status.value,
                    record.late_minutes,
                    record.early_leave_minutes,
                ),
            )
