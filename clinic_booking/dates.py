"""
Timezone-free calendar dates and times of day.

A CalendarDate is a plain (year, month, day) triple. Day arithmetic runs on
proleptic Gregorian ordinals, so no timestamp is ever built and no host
timezone can shift a date by one day. Weekday names come from fixed tables
indexed by the same ordinal arithmetic.

The only place a timezone is consulted is ``to_wall_clock``, which turns an
aware "now" into the organization's naive local wall-clock time before any
comparison happens.

Usage:
    d = parse("2025-03-17")
    add_days(d, 7).isoformat()      # '2025-03-24'
    get_weekday_name(d, "es-ES")    # 'lunes'
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pytz

from clinic_booking.config import settings
from clinic_booking.utils import language_of

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_TIME = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?", re.ASCII)

# Indexed by day_of_week: 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES: dict[str, tuple[str, ...]] = {
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    "es": ("domingo", "lunes", "martes", "miércoles", "jueves", "viernes", "sábado"),
}


class InvalidDateFormat(ValueError):
    """Raised when a date is not a valid YYYY-MM-DD calendar date."""


class InvalidTimeFormat(ValueError):
    """Raised when a time of day is not a valid HH:MM value."""


@dataclass(frozen=True, order=True)
class CalendarDate:
    """A calendar day with no time-of-day and no timezone."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        try:
            date(self.year, self.month, self.day)
        except (TypeError, ValueError) as exc:
            raise InvalidDateFormat(
                f"Invalid calendar date {self.year}-{self.month}-{self.day}: {exc}"
            ) from None

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "CalendarDate":
        try:
            d = date.fromordinal(ordinal)
        except (ValueError, OverflowError):
            raise InvalidDateFormat(f"Day number {ordinal} is out of range") from None
        return cls(d.year, d.month, d.day)

    def to_ordinal(self) -> int:
        return date(self.year, self.month, self.day).toordinal()

    @property
    def day_of_week(self) -> int:
        """0 = Sunday ... 6 = Saturday, the convention of stored schedules."""
        # Ordinal 1 (0001-01-01) is a Monday.
        return self.to_ordinal() % 7

    @property
    def is_weekend(self) -> bool:
        return self.day_of_week in (0, 6)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """An hour/minute pair on the 24h clock."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            raise InvalidTimeFormat(f"Invalid time of day {self.hour}:{self.minute}")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse ``HH:MM`` (or ``HH:MM:00`` as stored in time columns)."""
        if not isinstance(value, str):
            raise InvalidTimeFormat(f"Expected an HH:MM string, got {type(value).__name__}")
        match = _TIME.fullmatch(value.strip())
        if not match:
            raise InvalidTimeFormat(f"Time must be HH:MM, got {value!r}")
        hours, minutes, seconds = match.groups()
        if seconds is not None and seconds != "00":
            raise InvalidTimeFormat(f"Seconds are not supported, got {value!r}")
        return cls(int(hours), int(minutes))

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeOfDay":
        if not 0 <= minutes < MINUTES_PER_DAY:
            raise InvalidTimeFormat(f"{minutes} minutes is outside a single day")
        return cls(minutes // 60, minutes % 60)

    def to_minutes(self) -> int:
        return self.hour * 60 + self.minute

    def isoformat(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.isoformat()


DateLike = Union[CalendarDate, date, str]
TimeLike = Union[TimeOfDay, str]


def parse(iso: str) -> CalendarDate:
    """Parse a strict ``YYYY-MM-DD`` string."""
    if not isinstance(iso, str):
        raise InvalidDateFormat(f"Expected a YYYY-MM-DD string, got {type(iso).__name__}")
    match = _ISO_DATE.fullmatch(iso)
    if not match:
        raise InvalidDateFormat(f"Date must be YYYY-MM-DD, got {iso!r}")
    year, month, day = (int(part) for part in match.groups())
    return CalendarDate(year, month, day)


def to_iso(value: CalendarDate) -> str:
    return value.isoformat()


def as_calendar_date(value: DateLike) -> CalendarDate:
    """Coerce boundary input into a CalendarDate.

    Accepts a CalendarDate, an ISO string, or a ``datetime.date``.
    A ``datetime`` is rejected because it carries a time and possibly a
    timezone.
    """
    if isinstance(value, CalendarDate):
        return value
    if isinstance(value, str):
        return parse(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return CalendarDate(value.year, value.month, value.day)
    raise InvalidDateFormat(f"Cannot interpret {value!r} as a calendar date")


def as_time_of_day(value: TimeLike) -> TimeOfDay:
    if isinstance(value, TimeOfDay):
        return value
    return TimeOfDay.parse(value)


def add_days(value: CalendarDate, days: int) -> CalendarDate:
    return CalendarDate.from_ordinal(value.to_ordinal() + days)


def compare(a: CalendarDate, b: CalendarDate) -> int:
    """Return -1, 0 or 1 as ``a`` is before, equal to, or after ``b``."""
    return (a > b) - (a < b)


def is_before(a: CalendarDate, b: CalendarDate) -> bool:
    return a < b


def is_same_day(a: CalendarDate, b: CalendarDate) -> bool:
    return a == b


def today(reference_now: datetime) -> CalendarDate:
    """The calendar day of an already wall-clock ``now``."""
    return CalendarDate(reference_now.year, reference_now.month, reference_now.day)


def is_today(value: CalendarDate, reference_now: datetime) -> bool:
    return value == today(reference_now)


def get_weekday_name(value: CalendarDate, locale: Optional[str] = None) -> str:
    """Weekday name for ``value`` in ``locale`` (``en``/``es``, region tags allowed)."""
    requested = locale or settings.booking.locale
    names = WEEKDAY_NAMES.get(language_of(requested))
    if names is None:
        logger.debug("No weekday names for locale %r, using default", requested)
        names = WEEKDAY_NAMES.get(language_of(settings.booking.locale), WEEKDAY_NAMES["en"])
    return names[value.day_of_week]


def week_dates(start: CalendarDate, days: int = 7) -> list[CalendarDate]:
    """``days`` consecutive dates beginning at ``start``."""
    return [add_days(start, offset) for offset in range(days)]


def start_of_week(value: CalendarDate, first_day: int = 1) -> CalendarDate:
    """Most recent ``first_day`` (0 = Sunday, 1 = Monday) on or before ``value``."""
    if not 0 <= first_day <= 6:
        raise ValueError(f"first_day must be between 0 and 6, got {first_day}")
    return add_days(value, -((value.day_of_week - first_day) % 7))


def combine(value: CalendarDate, time_of_day: TimeOfDay) -> datetime:
    """The naive wall-clock moment at which a slot starts."""
    return datetime(value.year, value.month, value.day, time_of_day.hour, time_of_day.minute)


def minutes_until(moment: datetime, now: datetime) -> int:
    """Whole minutes from ``now`` to ``moment``, rounded down."""
    return (moment - now) // timedelta(minutes=1)


def to_wall_clock(now: datetime, timezone_name: Optional[str] = None) -> datetime:
    """Express ``now`` as a naive datetime on the organization's wall clock.

    Naive values are assumed to already be wall-clock time and pass through.
    Aware values are converted to ``timezone_name`` (default from config).
    """
    if now.tzinfo is None or now.utcoffset() is None:
        return now
    tz = pytz.timezone(timezone_name or settings.booking.timezone)
    return now.astimezone(tz).replace(tzinfo=None)
