from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..location.model import Location
from .model import NewTimeEntry, TimeEntry


class TimeEntryRepository(Protocol):
    def find_open(self, employee_id: str) -> Optional[TimeEntry]:
        raise NotImplementedError

    def create_open(self, entry: NewTimeEntry) -> TimeEntry:
        """Insert a checked-in entry.

        Must raise ConflictError when the employee already has an open entry,
        atomically with the insert.
        """

        raise NotImplementedError

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
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: str,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[TimeEntry]:
        """Entries with since <= check_in_time < until, newest first.

        ``limit``/``offset`` page through that ordering; no limit returns all.
        """

        raise NotImplementedError

    def count_for_employee(
        self,
        employee_id: str,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError
