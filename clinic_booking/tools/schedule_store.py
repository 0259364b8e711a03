"""
In-memory schedule store.

Holds organizations, doctors, weekly working hours, appointments and
time-off blocks. In production this is a database; the engine only
depends on the three reads of ``ScheduleRepository`` and on ``book``.

Every read goes through a tenant view obtained with
``store.for_organization(org_id)``, so one organization can never see
another organization's doctors or appointments.
"""

import logging
import threading
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Optional, Protocol

from clinic_booking.dates import CalendarDate, TimeOfDay, combine
from clinic_booking.schemas.scheduling_schema import (
    AppointmentStatus,
    AvailabilityBlock,
    BookedAppointment,
    WorkingHourBlock,
)

logger = logging.getLogger(__name__)


class UpstreamDataUnavailable(Exception):
    """Raised when schedule data cannot be read."""


class UnknownOrganizationError(LookupError):
    """Raised for an organization id the store does not hold."""


class UnknownDoctorError(LookupError):
    """Raised for a doctor that does not belong to the organization."""


class SlotConflictError(Exception):
    """Raised by ``book`` when the slot was taken in the meantime."""


class ScheduleRepository(Protocol):
    """Reads the availability calculator needs, scoped to one organization."""

    organization_id: str

    def get_working_hours(self, doctor_id: str, day_of_week: int) -> list[WorkingHourBlock]:
        ...

    def get_booked_appointments(
        self, doctor_id: str, day: CalendarDate
    ) -> list[BookedAppointment]:
        ...

    def get_availability_blocks(
        self, doctor_id: str, day: CalendarDate
    ) -> list[AvailabilityBlock]:
        ...


class InMemoryScheduleStore:
    """Thread-safe store for all organizations."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        """Drop all data."""
        with self._lock:
            self._organizations: dict[str, Optional[dict]] = {}
            self._doctors: dict[str, str] = {}  # doctor_id -> organization_id
            self._working_hours: dict[str, list[WorkingHourBlock]] = defaultdict(list)
            self._appointments: dict[str, BookedAppointment] = {}
            self._time_off: dict[str, list[AvailabilityBlock]] = defaultdict(list)
            self._failing: set[str] = set()

    # -- writes ------------------------------------------------------------

    def add_organization(self, organization_id: str, booking_settings: Optional[dict] = None) -> None:
        with self._lock:
            self._organizations[organization_id] = booking_settings

    def set_booking_settings(self, organization_id: str, booking_settings: Optional[dict]) -> None:
        with self._lock:
            self._require_organization(organization_id)
            self._organizations[organization_id] = booking_settings

    def add_doctor(self, organization_id: str, doctor_id: str) -> None:
        with self._lock:
            self._require_organization(organization_id)
            self._doctors[doctor_id] = organization_id

    def add_working_hours(self, block: WorkingHourBlock) -> None:
        with self._lock:
            self._require_known_doctor(block.doctor_id)
            self._working_hours[block.doctor_id].append(block)

    def add_appointment(self, appointment: BookedAppointment) -> None:
        with self._lock:
            self._require_known_doctor(appointment.doctor_id)
            self._appointments[appointment.id] = appointment

    def add_time_off(self, block: AvailabilityBlock) -> None:
        with self._lock:
            self._require_known_doctor(block.doctor_id)
            self._time_off[block.doctor_id].append(block)

    def set_unavailable(self, organization_id: str, unavailable: bool = True) -> None:
        """Make every read for ``organization_id`` fail, as a lost database would."""
        with self._lock:
            if unavailable:
                self._failing.add(organization_id)
            else:
                self._failing.discard(organization_id)

    # -- reads -------------------------------------------------------------

    def get_booking_settings(self, organization_id: str) -> Optional[dict]:
        """Raw stored settings for an organization, or None if never configured."""
        with self._lock:
            self._require_organization(organization_id)
            stored = self._organizations[organization_id]
            return dict(stored) if stored is not None else None

    def for_organization(self, organization_id: str) -> "OrganizationSchedule":
        with self._lock:
            self._require_organization(organization_id)
        return OrganizationSchedule(self, organization_id)

    def get_appointment(self, appointment_id: str) -> Optional[BookedAppointment]:
        return self._appointments.get(appointment_id)

    # -- booking -----------------------------------------------------------

    def book(
        self,
        organization_id: str,
        doctor_id: str,
        day: CalendarDate,
        start: TimeOfDay,
        duration_minutes: int,
        patient_id: Optional[str] = None,
    ) -> BookedAppointment:
        """
        Insert an appointment if nothing occupying overlaps it.

        Check and insert happen under one lock.

        Raises:
            SlotConflictError: If an occupying appointment overlaps.
        """
        with self._lock:
            schedule = self.for_organization(organization_id)
            end_minutes = start.to_minutes() + duration_minutes
            for existing in schedule.get_booked_appointments(doctor_id, day):
                if existing.occupies_slot and existing.overlaps(start.to_minutes(), end_minutes):
                    raise SlotConflictError(
                        f"{doctor_id} already has appointment {existing.id} at {existing.start_time}"
                    )
            appointment = BookedAppointment(
                id=f"APT-{uuid.uuid4().hex[:6].upper()}",
                doctor_id=doctor_id,
                appointment_date=day,
                start_time=start,
                duration_minutes=duration_minutes,
                status=AppointmentStatus.CONFIRMED,
                patient_id=patient_id,
            )
            self._appointments[appointment.id] = appointment
        logger.info("Appointment %s booked for %s on %s at %s", appointment.id, doctor_id, day, start)
        return appointment

    def cancel(
        self,
        appointment_id: str,
        status: AppointmentStatus = AppointmentStatus.CANCELLED,
    ) -> BookedAppointment:
        """Move an appointment to a cancelled status, freeing its slot."""
        with self._lock:
            existing = self._appointments.get(appointment_id)
            if existing is None:
                raise KeyError(f"Appointment {appointment_id} not found")
            updated = existing.model_copy(update={"status": status})
            self._appointments[appointment_id] = updated
        logger.info("Appointment %s cancelled (%s)", appointment_id, status.value)
        return updated

    # -- internals ---------------------------------------------------------

    def _require_organization(self, organization_id: str) -> None:
        if organization_id not in self._organizations:
            raise UnknownOrganizationError(f"Unknown organization {organization_id!r}")

    def _require_known_doctor(self, doctor_id: str) -> None:
        if doctor_id not in self._doctors:
            raise UnknownDoctorError(f"Unknown doctor {doctor_id!r}")

    def _check_access(self, organization_id: str, doctor_id: str) -> None:
        if organization_id in self._failing:
            raise UpstreamDataUnavailable(f"Schedule data for {organization_id} is unavailable")
        if self._doctors.get(doctor_id) != organization_id:
            raise UnknownDoctorError(
                f"Doctor {doctor_id!r} does not belong to organization {organization_id!r}"
            )


class OrganizationSchedule:
    """Tenant-scoped read view over an InMemoryScheduleStore."""

    def __init__(self, store: InMemoryScheduleStore, organization_id: str) -> None:
        self._store = store
        self.organization_id = organization_id

    def get_working_hours(self, doctor_id: str, day_of_week: int) -> list[WorkingHourBlock]:
        with self._store._lock:
            self._store._check_access(self.organization_id, doctor_id)
            return [
                block for block in self._store._working_hours[doctor_id]
                if block.day_of_week == day_of_week and block.is_active
            ]

    def get_booked_appointments(self, doctor_id: str, day: CalendarDate) -> list[BookedAppointment]:
        with self._store._lock:
            self._store._check_access(self.organization_id, doctor_id)
            return [
                appointment for appointment in self._store._appointments.values()
                if appointment.doctor_id == doctor_id and appointment.appointment_date == day
            ]

    def get_availability_blocks(self, doctor_id: str, day: CalendarDate) -> list[AvailabilityBlock]:
        """Time-off blocks touching any part of ``day``."""
        day_start = combine(day, TimeOfDay(0, 0))
        day_end = datetime(day_start.year, day_start.month, day_start.day, 23, 59, 59)
        with self._store._lock:
            self._store._check_access(self.organization_id, doctor_id)
            return [
                block for block in self._store._time_off[doctor_id]
                if block.start <= day_end and day_start < block.end
            ]

