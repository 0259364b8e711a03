"""
Seed data for the CLI and the console demo.

One clinic, two doctors, weekday working hours, a handful of booked and
cancelled appointments and one afternoon of time off, laid out around a
given Monday so the output is deterministic.
"""

from datetime import datetime

from clinic_booking.dates import CalendarDate, TimeOfDay, add_days, combine
from clinic_booking.schemas.scheduling_schema import (
    AppointmentStatus,
    AvailabilityBlock,
    BookedAppointment,
    WorkingHourBlock,
)
from clinic_booking.tools.schedule_store import InMemoryScheduleStore

DEMO_ORGANIZATION = "org-clinica-norte"
DEMO_DOCTORS = ["dr-garcia", "dr-lopez"]

DEMO_SETTINGS: dict = {
    "minimum_advance_minutes": 1440,
    "max_advance_days": 60,
    "slot_duration_minutes": 30,
    "allow_same_day_booking": True,
    "weekend_booking_enabled": False,
    "booking_window_start": "08:00",
    "booking_window_end": "18:00",
    "timezone": "America/Bogota",
    "locale": "es",
}

# (day_of_week, start, end); 0 = Sunday
WEEKLY_HOURS: dict[str, list[tuple[int, str, str]]] = {
    "dr-garcia": [
        (1, "09:00", "12:00"), (1, "14:00", "17:00"),
        (2, "09:00", "12:00"),
        (3, "09:00", "12:00"), (3, "14:00", "17:00"),
        (4, "14:00", "16:00"),
        (5, "09:00", "11:00"),
        (6, "09:00", "12:00"),
    ],
    "dr-lopez": [
        (1, "08:00", "10:00"),
        (3, "08:00", "10:00"),
        (5, "08:00", "10:00"),
    ],
}


def build_demo_store(week_start: CalendarDate) -> InMemoryScheduleStore:
    """A populated store whose appointments fall in the week of ``week_start``."""
    store = InMemoryScheduleStore()
    store.add_organization(DEMO_ORGANIZATION, dict(DEMO_SETTINGS))
    for doctor_id in DEMO_DOCTORS:
        store.add_doctor(DEMO_ORGANIZATION, doctor_id)
        for day_of_week, start, end in WEEKLY_HOURS[doctor_id]:
            store.add_working_hours(WorkingHourBlock(
                doctor_id=doctor_id, day_of_week=day_of_week, start_time=start, end_time=end,
            ))

    tuesday = add_days(week_start, 1)
    wednesday = add_days(week_start, 2)
    thursday = add_days(week_start, 3)
    for index, start in enumerate(["10:00", "10:30", "11:00", "11:30"]):
        store.add_appointment(BookedAppointment(
            id=f"APT-DEMO{index}",
            doctor_id="dr-garcia",
            appointment_date=tuesday,
            start_time=start,
            patient_id=f"pat-{index}",
        ))
    store.add_appointment(BookedAppointment(
        id="APT-DEMO9",
        doctor_id="dr-garcia",
        appointment_date=wednesday,
        start_time="10:00",
        status=AppointmentStatus.CANCELLED_BY_PATIENT,
        patient_id="pat-9",
    ))
    store.add_time_off(AvailabilityBlock(
        doctor_id="dr-garcia",
        start=combine(thursday, TimeOfDay(12, 0)),
        end=combine(thursday, TimeOfDay(18, 0)),
        reason="Congreso médico",
        block_type="training",
    ))
    return store


def demo_now(week_start: CalendarDate, hour: int = 8, minute: int = 0) -> datetime:
    """Naive wall-clock "now" on ``week_start``."""
    return combine(week_start, TimeOfDay(hour, minute))
