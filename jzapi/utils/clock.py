"""Time source abstraction so time-dependent logic can be tested without sleeping."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Manually advanced clock for tests and deterministic replays."""

    def __init__(self, current: datetime):
        self.current = ensure_utc(current)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_today(clock: Clock) -> date:
    """Calendar date in UTC for the given clock."""
    return clock.now().astimezone(timezone.utc).date()


system_clock = SystemClock()
