from __future__ import annotations

from enum import Enum


class LocationStatus(str, Enum):
    """Kết quả phân loại vị trí so với văn phòng."""

    VALID = "valid"
    NEAR_OFFICE = "near_office"
    REMOTE = "remote"
    LOW_ACCURACY = "low_accuracy"
    INVALID = "invalid"
    NO_OFFICE_CONFIG = "no_office_config"
    UNAVAILABLE = "unavailable"


class LocationSource(str, Enum):
    GPS = "gps"
    NETWORK = "network"
    PASSIVE = "passive"


class SessionStatus(str, Enum):
    """Trạng thái của một phiên chấm công (time entry)."""

    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


class AttendanceStatus(str, Enum):
    """Trạng thái chấm công theo ngày, lưu trong CSDL."""

    PRESENT = "present"
    ABSENT = "absent"
    PARTIAL = "partial"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
