"""
Day aggregator.

Turns per-day slot computations into the DayAvailability records that
drive the calendar. Count, density level and blocked flag all come from
the same post-policy slot list, so a day can never show slots while being
blocked, or be blocked while showing a non-zero count.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from clinic_booking.config import settings
from clinic_booking.dates import CalendarDate, get_weekday_name, week_dates
from clinic_booking.rules.messages import describe_block_reason
from clinic_booking.rules.policy import BookingPolicy
from clinic_booking.scheduling.calculator import SlotComputation
from clinic_booking.schemas.availability_schema import (
    AvailabilityLevel,
    BlockReason,
    DayAvailability,
)

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class LevelThresholds:
    """Upper bounds (inclusive) of the low and medium density levels."""

    low_max: int = settings.availability.level_low_max
    medium_max: int = settings.availability.level_medium_max

    def __post_init__(self) -> None:
        if self.low_max < 1 or self.medium_max <= self.low_max:
            raise ValueError(
                f"Thresholds must satisfy 1 <= low_max < medium_max, "
                f"got low_max={self.low_max} medium_max={self.medium_max}"
            )

    def classify(self, slots_count: int) -> AvailabilityLevel:
        if slots_count <= 0:
            return AvailabilityLevel.NONE
        if slots_count <= self.low_max:
            return AvailabilityLevel.LOW
        if slots_count <= self.medium_max:
            return AvailabilityLevel.MEDIUM
        return AvailabilityLevel.HIGH


def empty_day_reason(computation: SlotComputation) -> BlockReason:
    """Why a day with no bookable slot is blocked."""
    if computation.reason is not None:
        return computation.reason
    if computation.rejected_for(BlockReason.ADVANCE_NOTICE):
        return BlockReason.ADVANCE_NOTICE
    reasons = {slot.reason for slot in computation.rejected}
    if len(reasons) == 1:
        return reasons.pop()
    return BlockReason.NO_SLOTS


def summarize_day(
    computation: SlotComputation,
    policy: BookingPolicy,
    locale: Optional[str] = None,
    thresholds: Optional[LevelThresholds] = None,
) -> DayAvailability:
    thresholds = thresholds or LevelThresholds()
    count = len(computation.slots)
    reason = empty_day_reason(computation) if count == 0 else None
    return DayAvailability(
        date=computation.date,
        day_name=get_weekday_name(computation.date, locale),
        slots_count=count,
        availability_level=thresholds.classify(count),
        is_blocked=reason is not None,
        block_reason=reason,
        block_message=describe_block_reason(
            reason,
            locale,
            minimum_advance_minutes=policy.minimum_advance_minutes,
            max_advance_days=policy.max_advance_days,
            window=policy.window_label(),
            # a day-level advance-notice only comes from same-day booking being off
            same_day_closed=computation.reason == BlockReason.ADVANCE_NOTICE,
            # with no lead time, a slot fails the lead-time rule only once it has started
            elapsed=policy.minimum_advance_minutes == 0,
        ) or None,
        slots=list(computation.slots),
    )


def unavailable_day(
    day: CalendarDate,
    doctor_id: str,
    policy: BookingPolicy,
    locale: Optional[str] = None,
    detail: str = "",
) -> DayAvailability:
    computation = SlotComputation(
        date=day, doctor_id=doctor_id, reason=BlockReason.UNAVAILABLE, detail=detail,
    )
    return summarize_day(computation, policy, locale)


def aggregate_week(
    evaluate_day: Callable[[CalendarDate], SlotComputation],
    start: CalendarDate,
    doctor_id: str,
    policy: BookingPolicy,
    locale: Optional[str] = None,
    thresholds: Optional[LevelThresholds] = None,
    days: int = DAYS_PER_WEEK,
) -> list[DayAvailability]:
    """
    Summarize ``days`` consecutive dates starting at ``start``.

    A failure while evaluating one day marks only that day as
    ``unavailable``; the rest of the week is still returned.
    """
    summaries = []
    for day in week_dates(start, days):
        try:
            summaries.append(summarize_day(evaluate_day(day), policy, locale, thresholds))
        except Exception as exc:
            logger.warning("Availability for %s on %s failed: %s", doctor_id, day, exc)
            summaries.append(unavailable_day(day, doctor_id, policy, locale, detail=str(exc)))
    return summaries
