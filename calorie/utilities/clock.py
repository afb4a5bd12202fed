"""Time sources for the engine.

Everything that asks "what day is it" goes through a clock object so the
daily lock, rollover and session progress can be driven deterministically.
"""
from datetime import date, datetime, timedelta


class SystemClock:
    """Wall clock in local time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()


class FixedClock(SystemClock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
        self.current = self.current + timedelta(days=days, hours=hours, minutes=minutes)
        return self.current
