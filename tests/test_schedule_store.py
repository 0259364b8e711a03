"""Tests for the in-memory schedule store and its tenant views."""

import pytest

from clinic_booking.dates import TimeOfDay, add_days
from clinic_booking.schemas.scheduling_schema import AppointmentStatus, AvailabilityBlock, WorkingHourBlock
from clinic_booking.tools.schedule_store import (
    SlotConflictError,
    UnknownDoctorError,
    UnknownOrganizationError,
    UpstreamDataUnavailable,
)
from tests.conftest import (
    DOCTOR,
    MONDAY,
    ORG,
    OTHER_DOCTOR,
    OTHER_ORG,
    TUESDAY,
    at,
    make_appointment,
    make_time_off,
)


class TestTenantScoping:
    def test_reads_own_doctor(self, store):
        blocks = store.for_organization(ORG).get_working_hours(DOCTOR, 1)
        assert [(b.start_time, b.end_time) for b in blocks] == [(TimeOfDay(9, 0), TimeOfDay(12, 0))]

    def test_other_organizations_doctor_is_hidden(self, store):
        with pytest.raises(UnknownDoctorError):
            store.for_organization(OTHER_ORG).get_booked_appointments(DOCTOR, MONDAY)

    def test_unknown_organization(self, store):
        with pytest.raises(UnknownOrganizationError):
            store.for_organization("org-missing")

    def test_writes_need_known_doctor(self, store):
        with pytest.raises(UnknownDoctorError):
            store.add_appointment(make_appointment("10:00", doctor_id="doc-ghost"))

    def test_inactive_hours_not_returned(self, store):
        store.add_working_hours(WorkingHourBlock(
            doctor_id=DOCTOR, day_of_week=2, start_time="09:00", end_time="12:00", is_active=False,
        ))
        assert store.for_organization(ORG).get_working_hours(DOCTOR, 2) == []

    def test_unavailable_organization(self, store):
        store.set_unavailable(ORG)
        with pytest.raises(UpstreamDataUnavailable):
            store.for_organization(ORG).get_working_hours(DOCTOR, 1)
        # other tenants keep working
        assert store.for_organization(OTHER_ORG).get_working_hours(OTHER_DOCTOR, 1)
        store.set_unavailable(ORG, False)
        assert store.for_organization(ORG).get_working_hours(DOCTOR, 1)

    def test_reset(self, store):
        store.reset()
        with pytest.raises(UnknownOrganizationError):
            store.for_organization(ORG)


class TestReads:
    def test_appointments_filtered_by_day(self, store):
        store.add_appointment(make_appointment("10:00"))
        store.add_appointment(make_appointment("10:00", day=TUESDAY))
        booked = store.for_organization(ORG).get_booked_appointments(DOCTOR, MONDAY)
        assert [a.appointment_date for a in booked] == [MONDAY]

    def test_cancelled_appointments_are_still_returned(self, store):
        store.add_appointment(make_appointment("10:00", status=AppointmentStatus.CANCELLED))
        booked = store.for_organization(ORG).get_booked_appointments(DOCTOR, MONDAY)
        assert len(booked) == 1
        assert not booked[0].occupies_slot

    def test_multi_day_time_off_touches_each_day(self, store):
        store.add_time_off(AvailabilityBlock(
            doctor_id=DOCTOR, start=at(MONDAY, 14), end=at(add_days(MONDAY, 2), 10), reason="leave",
        ))
        schedule = store.for_organization(ORG)
        assert len(schedule.get_availability_blocks(DOCTOR, MONDAY)) == 1
        assert len(schedule.get_availability_blocks(DOCTOR, TUESDAY)) == 1
        assert len(schedule.get_availability_blocks(DOCTOR, add_days(MONDAY, 2))) == 1
        assert schedule.get_availability_blocks(DOCTOR, add_days(MONDAY, 3)) == []

    def test_time_off_ending_at_midnight_does_not_touch_next_day(self, store):
        store.add_time_off(make_time_off(MONDAY, "12:00", "18:00"))
        assert store.for_organization(ORG).get_availability_blocks(DOCTOR, TUESDAY) == []


class TestBook:
    def test_book_and_lookup(self, store):
        appointment = store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 30, patient_id="p1")
        assert appointment.id.startswith("APT-")
        assert appointment.status == AppointmentStatus.CONFIRMED
        assert store.get_appointment(appointment.id) == appointment

    def test_overlap_raises(self, store):
        store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 60)
        with pytest.raises(SlotConflictError):
            store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 30), 30)

    def test_adjacent_is_fine(self, store):
        store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 30)
        store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 30), 30)

    def test_cancel_frees_the_slot(self, store):
        first = store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 30)
        cancelled = store.cancel(first.id, AppointmentStatus.CANCELLED_BY_PATIENT)
        assert cancelled.status == AppointmentStatus.CANCELLED_BY_PATIENT
        store.book(ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 30)

    def test_cancel_unknown(self, store):
        with pytest.raises(KeyError):
            store.cancel("APT-NOPE")

    def test_book_across_tenants_rejected(self, store):
        with pytest.raises(UnknownDoctorError):
            store.book(OTHER_ORG, DOCTOR, MONDAY, TimeOfDay(10, 0), 30)
