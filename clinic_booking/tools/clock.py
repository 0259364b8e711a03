"""Sources of "now" for the engine.

Every operation that depends on the current time takes a Clock, so tests
and the console demo can pin "now" without patching ``datetime``.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol

import pytz

from clinic_booking.dates import to_wall_clock


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Real time, as an aware UTC datetime."""

    def now(self) -> datetime:
        return datetime.now(pytz.utc)


class FixedClock:
    """A clock pinned to one instant. ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, minutes: int = 0, days: int = 0) -> None:
        self._instant += timedelta(minutes=minutes, days=days)

    def set(self, instant: datetime) -> None:
        self._instant = instant


def wall_clock_now(clock: Clock, timezone_name: Optional[str] = None) -> datetime:
    """Current time on the organization's wall clock."""
    return to_wall_clock(clock.now(), timezone_name)
