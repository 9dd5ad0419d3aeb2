"""
Time rules service.
Resolves "today" in the organisation's timezone.
"""
from datetime import date, datetime
from typing import Optional
import pytz
from ..config import settings


class Clock:
    """Source of the current date for expiry and reporting logic."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def __init__(self, timezone_str: Optional[str] = None):
        self.tz = pytz.timezone(timezone_str or settings.tz_default)

    def now(self) -> datetime:
        return datetime.now(pytz.UTC).astimezone(self.tz)


class FixedClock(Clock):
    def __init__(self, fixed: date):
        self.fixed = fixed

    def now(self) -> datetime:
        if isinstance(self.fixed, datetime):
            return self.fixed
        return datetime.combine(self.fixed, datetime.min.time())

    def today(self) -> date:
        if isinstance(self.fixed, datetime):
            return self.fixed.date()
        return self.fixed


def get_clock() -> Clock:
    return SystemClock()
