"""Doctor schedule records read from the data layer."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from clinic_booking.dates import (
    CalendarDate,
    TimeOfDay,
    as_calendar_date,
    as_time_of_day,
    combine,
)


class AppointmentStatus(str, Enum):
    """Lifecycle status of a stored appointment."""
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    PENDING_PAYMENT = "pendiente_pago"
    RESCHEDULED = "reagendada"
    IN_PROGRESS = "en_curso"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    CANCELLED_BY_PATIENT = "cancelada_paciente"
    CANCELLED_BY_CLINIC = "cancelada_clinica"


# Statuses that free the slot again
RELEASING_STATUSES: frozenset[AppointmentStatus] = frozenset({
    AppointmentStatus.CANCELLED,
    AppointmentStatus.CANCELLED_BY_PATIENT,
    AppointmentStatus.CANCELLED_BY_CLINIC,
})


class WorkingHourBlock(BaseModel):
    """A weekly recurring block during which a doctor sees patients."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    doctor_id: str
    location_id: Optional[str] = None
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    start_time: TimeOfDay
    end_time: TimeOfDay
    is_active: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        return as_time_of_day(value)

    @field_serializer("start_time", "end_time")
    def _time_to_iso(self, value: TimeOfDay) -> str:
        return value.isoformat()

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingHourBlock":
        if self.end_time <= self.start_time:
            raise ValueError(
                f"end_time {self.end_time} must be after start_time {self.start_time}"
            )
        return self


class BookedAppointment(BaseModel):
    """An existing appointment on a doctor's calendar."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: str
    doctor_id: str
    appointment_date: CalendarDate
    start_time: TimeOfDay
    duration_minutes: int = Field(default=30, gt=0)
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    patient_id: Optional[str] = None
    location_id: Optional[str] = None

    @field_validator("appointment_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return as_calendar_date(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        return as_time_of_day(value)

    @field_serializer("appointment_date", "start_time")
    def _to_iso(self, value) -> str:
        return value.isoformat()

    @property
    def occupies_slot(self) -> bool:
        return self.status not in RELEASING_STATUSES

    @property
    def start_minutes(self) -> int:
        return self.start_time.to_minutes()

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        return self.start_minutes < end_minutes and start_minutes < self.end_minutes


class AvailabilityBlock(BaseModel):
    """Time off (vacation, sick leave, training) on a doctor's calendar.

    ``start`` and ``end`` are naive wall-clock datetimes in the
    organization's timezone.
    """

    doctor_id: str
    start: datetime
    end: datetime
    reason: str = ""
    block_type: str = "time_off"

    @field_validator("start", "end")
    @classmethod
    def _require_wall_clock(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            raise ValueError("time-off bounds must be naive wall-clock datetimes")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "AvailabilityBlock":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    def overlaps(self, day: CalendarDate, start: TimeOfDay, duration_minutes: int) -> bool:
        slot_start = combine(day, start)
        slot_end = slot_start + timedelta(minutes=duration_minutes)
        return self.start < slot_end and slot_start < self.end
