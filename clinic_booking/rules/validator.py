"""
Date and slot validation shared by the calendar and the submission path.

This module is the only place that decides whether a (date, time) can be
booked. The availability calculator runs every candidate slot through
``check_slot`` and the submission path calls ``validate`` with the same
inputs, so a day the calendar greys out is always rejected on submit with
the same reason, and vice versa.

Rules, in the order they are applied:
    1. past-date            the date is before today
    2. booking-horizon      the date is beyond max_advance_days
    3. weekend-closed       weekend date and weekend booking disabled
    4. advance-notice       same-day disabled, or lead time not met
    5. outside-booking-window   standard rules only
    6. time-off             overlaps a doctor's time-off block
    7. conflict             overlaps an occupying appointment
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from clinic_booking.dates import (
    MINUTES_PER_DAY,
    CalendarDate,
    TimeOfDay,
    combine,
    minutes_until,
    today,
)
from clinic_booking.rules.messages import describe_block_reason
from clinic_booking.rules.policy import BookingPolicy
from clinic_booking.rules.slot_state import SlotState, SlotStateMachine, SlotTrigger
from clinic_booking.schemas.availability_schema import BlockReason, ValidationResult
from clinic_booking.schemas.scheduling_schema import AvailabilityBlock, BookedAppointment
from clinic_booking.utils import round_up

logger = logging.getLogger(__name__)

_TRIGGERS: dict[Optional[BlockReason], SlotTrigger] = {
    None: SlotTrigger.RULES_PASSED,
    BlockReason.PAST_DATE: SlotTrigger.DATE_IN_PAST,
    BlockReason.ADVANCE_NOTICE: SlotTrigger.LEAD_TIME_NOT_MET,
    BlockReason.CONFLICT: SlotTrigger.SLOT_OCCUPIED,
    BlockReason.TIME_OFF: SlotTrigger.DOCTOR_TIME_OFF,
    BlockReason.BOOKING_HORIZON: SlotTrigger.BEYOND_HORIZON,
    BlockReason.WEEKEND_CLOSED: SlotTrigger.WEEKEND_CLOSED,
    BlockReason.OUTSIDE_BOOKING_WINDOW: SlotTrigger.OUTSIDE_WINDOW,
}


def validate_date(
    candidate_date: CalendarDate, policy: BookingPolicy, now: datetime
) -> Optional[BlockReason]:
    """Date-level rules only. Returns the block reason, or None if the day is open."""
    current = today(now)
    if candidate_date < current:
        return BlockReason.PAST_DATE
    if candidate_date.to_ordinal() - current.to_ordinal() > policy.max_advance_days:
        return BlockReason.BOOKING_HORIZON
    if candidate_date.is_weekend and not policy.weekend_booking_enabled:
        return BlockReason.WEEKEND_CLOSED
    if candidate_date == current and not policy.allow_same_day_booking:
        return BlockReason.ADVANCE_NOTICE
    return None


def meets_lead_time(moment: datetime, policy: BookingPolicy, now: datetime) -> bool:
    """True when ``moment`` is strictly in the future and far enough ahead."""
    return moment > now and minutes_until(moment, now) >= policy.minimum_advance_minutes


def _within_window(start_minutes: int, end_minutes: int, policy: BookingPolicy) -> bool:
    if not policy.has_booking_window:
        return True
    return (policy.booking_window_start.to_minutes() <= start_minutes
            and end_minutes <= policy.booking_window_end.to_minutes())


def check_slot(
    candidate_date: CalendarDate,
    candidate_time: TimeOfDay,
    policy: BookingPolicy,
    now: datetime,
    booked: Iterable[BookedAppointment] = (),
    time_off: Iterable[AvailabilityBlock] = (),
    duration_minutes: Optional[int] = None,
) -> Optional[BlockReason]:
    """Apply every rule to one slot. Returns the first failing reason, or None."""
    reason = validate_date(candidate_date, policy, now)
    if reason is not None:
        return reason

    duration = duration_minutes or policy.slot_duration_minutes
    start = candidate_time.to_minutes()
    end = start + duration

    if not meets_lead_time(combine(candidate_date, candidate_time), policy, now):
        return BlockReason.ADVANCE_NOTICE
    if not _within_window(start, end, policy):
        return BlockReason.OUTSIDE_BOOKING_WINDOW
    if any(block.overlaps(candidate_date, candidate_time, duration) for block in time_off):
        return BlockReason.TIME_OFF
    for appointment in booked:
        if (appointment.occupies_slot
                and appointment.appointment_date == candidate_date
                and appointment.overlaps(start, end)):
            return BlockReason.CONFLICT
    return None


def earliest_valid_time(
    candidate_date: CalendarDate,
    policy: BookingPolicy,
    now: datetime,
    duration_minutes: Optional[int] = None,
    booked: Iterable[BookedAppointment] = (),
    time_off: Iterable[AvailabilityBlock] = (),
) -> Optional[TimeOfDay]:
    """First start time on ``candidate_date`` that ``check_slot`` accepts.

    Times are aligned to the slot grid starting at midnight. The search
    starts at the lead-time boundary and skips grid times rejected for
    any other reason (booking window, time-off, conflicts). Returns None
    when no grid time is left on that day.
    """
    duration = duration_minutes or policy.slot_duration_minutes
    if policy.minimum_advance_minutes == 0:
        earliest = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
    else:
        earliest = now + timedelta(minutes=policy.minimum_advance_minutes)
        if earliest.second or earliest.microsecond:
            earliest = earliest.replace(second=0, microsecond=0) + timedelta(minutes=1)

    earliest_day = today(earliest)
    if earliest_day > candidate_date:
        return None
    if earliest_day < candidate_date:
        first = 0
    else:
        first = round_up(earliest.hour * 60 + earliest.minute, duration)

    booked, time_off = list(booked), list(time_off)
    for minutes in range(first, MINUTES_PER_DAY, duration):
        candidate = TimeOfDay.from_minutes(minutes)
        reason = check_slot(
            candidate_date, candidate, policy, now,
            booked=booked, time_off=time_off, duration_minutes=duration,
        )
        if reason is None:
            return candidate
    return None


def validate(
    candidate_date: CalendarDate,
    candidate_time: TimeOfDay,
    policy: BookingPolicy,
    now: datetime,
    booked: Iterable[BookedAppointment] = (),
    time_off: Iterable[AvailabilityBlock] = (),
    duration_minutes: Optional[int] = None,
    locale: Optional[str] = None,
) -> ValidationResult:
    """
    Validate one candidate slot and return a full verdict.

    Blocked outcomes are returned, never raised. For advance-notice
    rejections ``next_valid_time`` holds the earliest start on the same day
    that passes every rule, when there is one.
    """
    booked, time_off = list(booked), list(time_off)
    reason = check_slot(
        candidate_date, candidate_time, policy, now,
        booked=booked, time_off=time_off, duration_minutes=duration_minutes,
    )
    machine = SlotStateMachine()
    state = machine.transition(_TRIGGERS[reason])

    next_valid: Optional[TimeOfDay] = None
    same_day_closed = candidate_date == today(now) and not policy.allow_same_day_booking
    if reason == BlockReason.ADVANCE_NOTICE and not same_day_closed:
        next_valid = earliest_valid_time(
            candidate_date, policy, now, duration_minutes, booked=booked, time_off=time_off,
        )

    logger.debug(
        "Validated %s %s for %s: %s",
        candidate_date, candidate_time, policy.role.value, state.value,
    )
    return ValidationResult(
        is_valid=state == SlotState.VALID,
        state=state,
        reason=reason,
        next_valid_time=next_valid,
        message=describe_block_reason(
            reason,
            locale,
            minimum_advance_minutes=policy.minimum_advance_minutes,
            max_advance_days=policy.max_advance_days,
            window=policy.window_label(),
            elapsed=combine(candidate_date, candidate_time) <= now,
            same_day_closed=same_day_closed,
        ),
        applied_rule=policy.applied_rule,
    )
