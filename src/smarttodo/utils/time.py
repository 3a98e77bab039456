"""Time utilities."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SystemClock:
    """Wall clock; 'today' is the calendar date in the configured zone."""

    def __init__(self, tz: str = "UTC"):
        self.tz = ZoneInfo(tz)

    def now(self) -> datetime:
        return utc_now()

    def today(self) -> date:
        return datetime.now(self.tz).date()


class FrozenClock:
    """Manually advanced clock for maintenance scripts and tests."""

    def __init__(self, start: datetime | None = None, tz: str = "UTC"):
        self.tz = ZoneInfo(tz)
        self._now = ensure_utc(start) if start else utc_now()

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.astimezone(self.tz).date()

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a ``timedelta(**kwargs)``."""
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)
