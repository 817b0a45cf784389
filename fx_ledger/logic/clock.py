# fx_ledger/logic/clock.py

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


class Clock(ABC):
    """
    Injectable time source. Rate caching, "today" detection and notification
    throttling all read time through a Clock, never from datetime directly.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self._tz = tz or timezone.utc

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware."""
        ...

    def today(self) -> date:
        """Calendar date in the clock's timezone."""
        return self.now().astimezone(self._tz).date()


class SystemClock(Clock):
    """Production clock backed by the system time."""

    @classmethod
    def for_timezone(cls, name: str) -> "SystemClock":
        return cls(ZoneInfo(name))

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """Clock that only moves when told to. Used by tests."""

    def __init__(self, fixed_time: Optional[datetime] = None, tz: Optional[tzinfo] = None):
        super().__init__(tz)
        self._fixed_time = fixed_time or datetime(2026, 2, 4, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, time: datetime) -> None:
        self._fixed_time = time

    def advance(self, **kwargs) -> datetime:
        """Moves the clock forward; accepts timedelta keyword arguments (hours=6, ...)."""
        self._fixed_time = self._fixed_time + timedelta(**kwargs)
        return self._fixed_time
