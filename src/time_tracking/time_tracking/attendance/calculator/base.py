from __future__ import annotations

from abc import ABC, abstractmethod

from ...schedules.model import WorkSchedule
from ...sessions.model import TimeEntry
from ..model import AttendanceRecord


class AttendanceCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance derivation)."""

    @abstractmethod
    def derive_record(self, entry: TimeEntry, schedule: WorkSchedule) -> AttendanceRecord:
        raise NotImplementedError
