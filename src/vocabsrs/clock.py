"""Calendar dates and timestamps in the configured timezone.

The scheduler and recorder compare calendar dates only. Anything carrying a
time of day is reduced to its local date here, before it reaches them.
"""
from datetime import UTC, date, datetime, tzinfo
from typing import Callable, Optional, Union

from vocabsrs.config import settings


class Clock:
    """Source of "now" and "today" for the engine."""

    def __init__(self, tz: Optional[tzinfo] = None, now: Optional[Callable[[], datetime]] = None):
        self.tz = tz or settings.learning.tzinfo
        self._now = now or (lambda: datetime.now(UTC))

    def now(self) -> datetime:
        value = self._now()
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)

    def date_of_ms(self, ts_ms: int) -> date:
        """Local calendar date of an epoch-millisecond timestamp."""
        return datetime.fromtimestamp(ts_ms / 1000, tz=self.tz).date()


def as_calendar_date(value: Union[date, datetime, str, None], tz: tzinfo) -> Optional[date]:
    """Reduce a date, datetime or ISO string to a calendar date in ``tz``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(tz).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return as_calendar_date(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)
    raise TypeError(f"Cannot interpret {value!r} as a calendar date")
