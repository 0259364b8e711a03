"""
Availability calculator.

Expands a doctor's working-hour blocks for one date into candidate slots
and runs each candidate through the shared slot validator. Slots that
survive are bookable; the others are kept with their block reason so the
day aggregator can explain an empty day.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from clinic_booking.dates import MINUTES_PER_DAY, CalendarDate, TimeOfDay
from clinic_booking.rules.policy import BookingPolicy
from clinic_booking.rules.validator import check_slot, validate_date
from clinic_booking.schemas.availability_schema import BlockReason, TimeSlot
from clinic_booking.schemas.scheduling_schema import WorkingHourBlock
from clinic_booking.tools.schedule_store import (
    ScheduleRepository,
    UnknownDoctorError,
    UpstreamDataUnavailable,
)

logger = logging.getLogger(__name__)


@dataclass
class SlotComputation:
    """Outcome of evaluating one doctor-day.

    ``reason`` is set when the whole date was rejected before any slot was
    generated (a date-level rule, or schedule data that could not be read).
    """

    date: CalendarDate
    doctor_id: str
    slots: list[TimeSlot] = field(default_factory=list)
    rejected: list[TimeSlot] = field(default_factory=list)
    reason: Optional[BlockReason] = None
    detail: str = ""

    @property
    def candidate_count(self) -> int:
        return len(self.slots) + len(self.rejected)

    def rejected_for(self, reason: BlockReason) -> int:
        return sum(1 for slot in self.rejected if slot.reason == reason)


def working_blocks(
    blocks: list[WorkingHourBlock], location_id: Optional[str] = None
) -> list[WorkingHourBlock]:
    """Active blocks, limited to one location when given. Blocks without a location always count."""
    blocks = [b for b in blocks if b.is_active]
    if location_id is not None:
        blocks = [b for b in blocks if b.location_id in (None, location_id)]
    return blocks


def candidate_times(blocks: list[WorkingHourBlock], duration_minutes: int) -> list[TimeOfDay]:
    """Partition working-hour blocks into slot start times.

    A slot must fit entirely inside its block. Overlapping blocks yield
    each start time once.
    """
    starts: set[int] = set()
    for block in blocks:
        cursor = block.start_time.to_minutes()
        end = block.end_time.to_minutes()
        while cursor + duration_minutes <= end and cursor < MINUTES_PER_DAY:
            starts.add(cursor)
            cursor += duration_minutes
    return [TimeOfDay.from_minutes(m) for m in sorted(starts)]


class AvailabilityCalculator:
    """Computes the bookable slots of one doctor on one date."""

    def evaluate(
        self,
        repository: ScheduleRepository,
        doctor_id: str,
        day: CalendarDate,
        policy: BookingPolicy,
        now: datetime,
        duration_minutes: Optional[int] = None,
        location_id: Optional[str] = None,
    ) -> SlotComputation:
        """
        Evaluate every candidate slot for ``doctor_id`` on ``day``.

        ``now`` must already be the organization's wall-clock time. Read
        failures are reported as ``BlockReason.UNAVAILABLE`` rather than
        raised, so a calendar can still render the other days.
        """
        result = SlotComputation(date=day, doctor_id=doctor_id)
        duration = duration_minutes or policy.slot_duration_minutes

        day_reason = validate_date(day, policy, now)
        if day_reason is not None:
            logger.debug("%s rejected for %s: %s", day, doctor_id, day_reason.value)
            result.reason = day_reason
            return result

        try:
            blocks = repository.get_working_hours(doctor_id, day.day_of_week)
            booked = repository.get_booked_appointments(doctor_id, day)
            time_off = repository.get_availability_blocks(doctor_id, day)
        except (UpstreamDataUnavailable, UnknownDoctorError) as exc:
            logger.warning("Schedule data unavailable for %s on %s: %s", doctor_id, day, exc)
            result.reason = BlockReason.UNAVAILABLE
            result.detail = str(exc)
            return result

        for start in candidate_times(working_blocks(blocks, location_id), duration):
            reason = check_slot(
                day, start, policy, now,
                booked=booked, time_off=time_off, duration_minutes=duration,
            )
            slot = TimeSlot(
                date=day,
                time=start,
                doctor_id=doctor_id,
                duration_minutes=duration,
                available=reason is None,
                reason=reason,
                location_id=location_id,
            )
            if reason is None:
                result.slots.append(slot)
            else:
                result.rejected.append(slot)

        logger.debug(
            "%s %s: %d bookable of %d candidates",
            doctor_id, day, len(result.slots), result.candidate_count,
        )
        return result

    def calculate(
        self,
        repository: ScheduleRepository,
        doctor_id: str,
        day: CalendarDate,
        policy: BookingPolicy,
        now: datetime,
        duration_minutes: Optional[int] = None,
        location_id: Optional[str] = None,
    ) -> list[TimeSlot]:
        """Bookable slots only, ordered by start time."""
        return self.evaluate(
            repository, doctor_id, day, policy, now,
            duration_minutes=duration_minutes, location_id=location_id,
        ).slots
