"""Operational calendar.

Every day count in the engine is a difference of calendar dates in one
fixed timezone. Timestamps are truncated to their local date before any
subtraction, never compared as raw 24h deltas.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo


class Clock:
    """Supplies today/yesterday and calendar-day arithmetic in one timezone."""

    def __init__(
        self,
        timezone: str = "Asia/Shanghai",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._tz = ZoneInfo(timezone)
        self._now = now

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        """Current time as an aware datetime in the operational timezone."""
        if self._now is None:
            return datetime.now(self._tz)
        value = self._now()
        if value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value.astimezone(self._tz)

    def today(self) -> date:
        return self.now().date()

    def yesterday(self) -> date:
        return self.today() - timedelta(days=1)

    def local_date(self, value: date | datetime) -> date:
        """Truncate a date or timestamp to its calendar date.

        Naive datetimes are taken as already in the operational timezone.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.date()
            return value.astimezone(self._tz).date()
        return value

    def days_between(self, earlier: date | datetime, later: date | datetime) -> int:
        """Calendar days from ``earlier`` to ``later`` (negative if reversed)."""
        return (self.local_date(later) - self.local_date(earlier)).days


class FixedClock(Clock):
    """A clock pinned to one operational day, for replays and tests."""

    def __init__(self, today: date, timezone: str = "Asia/Shanghai") -> None:
        tz = ZoneInfo(timezone)
        pinned = datetime.combine(today, datetime.min.time(), tzinfo=tz)
        super().__init__(timezone, now=lambda: pinned)
