"""Availability, validation and booking result models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from clinic_booking.dates import CalendarDate, TimeOfDay
from clinic_booking.rules.slot_state import SlotState


class AvailabilityLevel(str, Enum):
    """Density of bookable slots on a day."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BlockReason(str, Enum):
    """Why a slot or a day cannot be booked."""
    PAST_DATE = "past-date"
    ADVANCE_NOTICE = "advance-notice"
    CONFLICT = "conflict"
    TIME_OFF = "time-off"
    BOOKING_HORIZON = "booking-horizon"
    WEEKEND_CLOSED = "weekend-closed"
    OUTSIDE_BOOKING_WINDOW = "outside-booking-window"
    NO_SLOTS = "no-slots"
    UNAVAILABLE = "unavailable"


class TimeSlot(BaseModel):
    """One bookable (or rejected) slot on a doctor's calendar."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    date: CalendarDate
    time: TimeOfDay
    doctor_id: str
    duration_minutes: int = 30
    available: bool = True
    reason: Optional[BlockReason] = None
    location_id: Optional[str] = None

    @property
    def end_time(self) -> TimeOfDay:
        return TimeOfDay.from_minutes(self.time.to_minutes() + self.duration_minutes)

    @field_serializer("date", "time")
    def _to_iso(self, value) -> str:
        return value.isoformat()


class DayAvailability(BaseModel):
    """Per-day summary driving the calendar.

    ``slots_count``, ``availability_level`` and ``is_blocked`` are derived
    from the same post-policy slot list and must agree with each other.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    date: CalendarDate
    day_name: str
    slots_count: int = Field(ge=0)
    availability_level: AvailabilityLevel
    is_blocked: bool
    block_reason: Optional[BlockReason] = None
    block_message: Optional[str] = None
    slots: list[TimeSlot] = Field(default_factory=list)

    @field_serializer("date")
    def _to_iso(self, value: CalendarDate) -> str:
        return value.isoformat()

    @model_validator(mode="after")
    def _check_coherence(self) -> "DayAvailability":
        empty = self.slots_count == 0
        if empty != (self.availability_level == AvailabilityLevel.NONE) or empty != self.is_blocked:
            raise ValueError(
                f"Incoherent day {self.date}: slots_count={self.slots_count}, "
                f"level={self.availability_level.value}, is_blocked={self.is_blocked}"
            )
        if self.is_blocked != (self.block_reason is not None):
            raise ValueError(f"Day {self.date}: a blocked day needs exactly one block reason")
        if self.slots and len(self.slots) != self.slots_count:
            raise ValueError(f"Day {self.date}: slots_count does not match the slot list")
        return self


class ValidationResult(BaseModel):
    """Verdict for one candidate (date, time)."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    is_valid: bool
    state: SlotState
    reason: Optional[BlockReason] = None
    next_valid_time: Optional[TimeOfDay] = None
    message: str = ""
    applied_rule: str = "standard"

    @field_serializer("next_valid_time")
    def _to_iso(self, value: Optional[TimeOfDay]) -> Optional[str]:
        return value.isoformat() if value is not None else None


class BookingResult(BaseModel):
    """Outcome of a submission attempt."""
    success: bool
    message: str
    appointment_id: Optional[str] = None
    reason: Optional[BlockReason] = None
    doctor_id: str = ""
    date: str = ""
    time: str = ""
    created_at: Optional[datetime] = None
