from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall clock in the configured work time zone.

    Note: Injected everywhere so tests can pin "now".
    """

    def __init__(self, tz: tzinfo | None = None):
        self._tz = tz or ZoneInfo("UTC")

    def now(self) -> datetime:
        return datetime.now(self._tz)
