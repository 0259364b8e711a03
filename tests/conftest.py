"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional

import pytest

from clinic_booking.dates import CalendarDate, TimeOfDay
from clinic_booking.rules.policy import BookingPolicy, Role
from clinic_booking.scheduling.service import AvailabilityService
from clinic_booking.schemas.scheduling_schema import (
    AvailabilityBlock,
    BookedAppointment,
    WorkingHourBlock,
)
from clinic_booking.tools.booking_settings import BookingSettingsService
from clinic_booking.tools.clock import FixedClock
from clinic_booking.tools.schedule_store import InMemoryScheduleStore

# 2025-03-17 is a Monday
MONDAY = CalendarDate(2025, 3, 17)
TUESDAY = CalendarDate(2025, 3, 18)
SATURDAY = CalendarDate(2025, 3, 22)

ORG = "org-1"
OTHER_ORG = "org-2"
DOCTOR = "doc-1"
OTHER_DOCTOR = "doc-2"

ORG_SETTINGS = {
    "minimum_advance_minutes": 1440,
    "max_advance_days": 90,
    "slot_duration_minutes": 30,
    "allow_same_day_booking": True,
    "weekend_booking_enabled": False,
    "booking_window_start": "08:00",
    "booking_window_end": "18:00",
    "timezone": "America/Bogota",
    "locale": "en",
}


def at(day: CalendarDate, hour: int, minute: int = 0, second: int = 0) -> datetime:
    """Naive wall-clock moment on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute, second)


def make_policy(
    minimum_advance_minutes: int = 1440,
    is_privileged: bool = False,
    **overrides,
) -> BookingPolicy:
    """BookingPolicy with test-friendly defaults."""
    values = dict(
        minimum_advance_minutes=minimum_advance_minutes,
        is_privileged=is_privileged,
        role=Role.ADMIN if is_privileged else Role.PATIENT,
        max_advance_days=90,
        weekend_booking_enabled=False,
        allow_same_day_booking=True,
        slot_duration_minutes=30,
    )
    if not is_privileged:
        values.update(booking_window_start=TimeOfDay(8, 0), booking_window_end=TimeOfDay(18, 0))
    values.update(overrides)
    return BookingPolicy(**values)


def make_appointment(
    start: str,
    day: CalendarDate = MONDAY,
    doctor_id: str = DOCTOR,
    appointment_id: Optional[str] = None,
    **kwargs,
) -> BookedAppointment:
    return BookedAppointment(
        id=appointment_id or f"APT-{day}-{start}",
        doctor_id=doctor_id,
        appointment_date=day,
        start_time=start,
        **kwargs,
    )


def make_time_off(
    day: CalendarDate, start: str, end: str, doctor_id: str = DOCTOR
) -> AvailabilityBlock:
    start_time, end_time = TimeOfDay.parse(start), TimeOfDay.parse(end)
    return AvailabilityBlock(
        doctor_id=doctor_id,
        start=at(day, start_time.hour, start_time.minute),
        end=at(day, end_time.hour, end_time.minute),
        reason="vacation",
    )


@pytest.fixture
def store():
    """Two organizations; doc-1 works Mondays 09:00-12:00."""
    s = InMemoryScheduleStore()
    s.add_organization(ORG, dict(ORG_SETTINGS))
    s.add_organization(OTHER_ORG, dict(ORG_SETTINGS))
    s.add_doctor(ORG, DOCTOR)
    s.add_doctor(OTHER_ORG, OTHER_DOCTOR)
    s.add_working_hours(WorkingHourBlock(
        doctor_id=DOCTOR, day_of_week=1, start_time="09:00", end_time="12:00",
    ))
    s.add_working_hours(WorkingHourBlock(
        doctor_id=OTHER_DOCTOR, day_of_week=1, start_time="09:00", end_time="10:00",
    ))
    return s


@pytest.fixture
def clock():
    return FixedClock(at(MONDAY, 8, 0))


@pytest.fixture
def settings_service(store):
    return BookingSettingsService(store)


@pytest.fixture
def service(store, settings_service, clock):
    return AvailabilityService(store, settings_service=settings_service, clock=clock)
