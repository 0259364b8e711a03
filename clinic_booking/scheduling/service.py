"""
Public availability and booking surface.

AvailabilityService ties the pieces together for one request: it loads
the organization's settings, resolves the role's policy, reads "now" from
the injected clock on the organization's wall clock, and hands all of it
to the calculator, aggregator and validator.

The calendar (``compute_week_availability``) and the submission path
(``book_appointment``) run the same validator over the same inputs.
"""

from datetime import datetime
from typing import Optional, Union

from clinic_booking.dates import (
    CalendarDate,
    DateLike,
    TimeLike,
    as_calendar_date,
    as_time_of_day,
    to_wall_clock,
)
from clinic_booking.logging_context import get_request_logger, new_request_id
from clinic_booking.rules.messages import describe_block_reason
from clinic_booking.rules.policy import BookingPolicy, Role, resolve_policy
from clinic_booking.rules.validator import validate, validate_date
from clinic_booking.scheduling.aggregator import LevelThresholds, aggregate_week, summarize_day
from clinic_booking.scheduling.calculator import (
    AvailabilityCalculator,
    SlotComputation,
    candidate_times,
    working_blocks,
)
from clinic_booking.schemas.availability_schema import (
    BlockReason,
    BookingResult,
    DayAvailability,
    TimeSlot,
    ValidationResult,
)
from clinic_booking.schemas.settings_schema import BookingSettings
from clinic_booking.tools.booking_settings import BookingSettingsService
from clinic_booking.tools.clock import Clock, SystemClock, wall_clock_now
from clinic_booking.tools.schedule_store import (
    InMemoryScheduleStore,
    SlotConflictError,
    UnknownOrganizationError,
)

logger = get_request_logger(__name__)


class AvailabilityService:
    """Computes availability and validates bookings for any organization."""

    def __init__(
        self,
        store: InMemoryScheduleStore,
        settings_service: Optional[BookingSettingsService] = None,
        clock: Optional[Clock] = None,
        calculator: Optional[AvailabilityCalculator] = None,
        thresholds: Optional[LevelThresholds] = None,
    ) -> None:
        self._store = store
        self._settings = settings_service or BookingSettingsService(store)
        self._clock = clock or SystemClock()
        self._calculator = calculator or AvailabilityCalculator()
        self._thresholds = thresholds or LevelThresholds()

    # -- request context ---------------------------------------------------

    def _booking_settings(self, organization_id: Optional[str]) -> BookingSettings:
        if organization_id is None:
            return BookingSettings()
        try:
            return self._settings.get_settings(organization_id)
        except UnknownOrganizationError:
            logger.warning("Unknown organization %s, using default settings", organization_id)
            return BookingSettings()

    def _now(self, booking_settings: BookingSettings, now: Optional[datetime]) -> datetime:
        if now is not None:
            return to_wall_clock(now, booking_settings.timezone)
        return wall_clock_now(self._clock, booking_settings.timezone)

    def _evaluate_day(
        self,
        organization_id: str,
        doctor_id: str,
        day: CalendarDate,
        policy: BookingPolicy,
        now: datetime,
        duration_minutes: Optional[int],
        location_id: Optional[str],
    ) -> SlotComputation:
        day_reason = validate_date(day, policy, now)
        if day_reason is not None:
            return SlotComputation(date=day, doctor_id=doctor_id, reason=day_reason)
        try:
            repository = self._store.for_organization(organization_id)
        except UnknownOrganizationError as exc:
            logger.warning("No schedule for %s: %s", organization_id, exc)
            return SlotComputation(
                date=day, doctor_id=doctor_id, reason=BlockReason.UNAVAILABLE, detail=str(exc),
            )
        return self._calculator.evaluate(
            repository, doctor_id, day, policy, now,
            duration_minutes=duration_minutes, location_id=location_id,
        )

    # -- queries -----------------------------------------------------------

    def compute_day_availability(
        self,
        organization_id: str,
        doctor_id: str,
        date: DateLike,
        role: Union[Role, str],
        duration_minutes: Optional[int] = None,
        *,
        use_standard_rules: bool = False,
        location_id: Optional[str] = None,
        now: Optional[datetime] = None,
        locale: Optional[str] = None,
    ) -> DayAvailability:
        """
        DayAvailability of one doctor on one date.

        Raises:
            InvalidDateFormat: If ``date`` is not a valid YYYY-MM-DD date.
            InvalidRole: If ``role`` is not a known role.
        """
        new_request_id()
        day = as_calendar_date(date)
        booking_settings = self._booking_settings(organization_id)
        policy = resolve_policy(booking_settings, role, use_standard_rules)
        wall_now = self._now(booking_settings, now)

        computation = self._evaluate_day(
            organization_id, doctor_id, day, policy, wall_now, duration_minutes, location_id,
        )
        summary = summarize_day(
            computation, policy, locale or booking_settings.locale, self._thresholds,
        )
        logger.info(
            "Day %s for %s/%s as %s: %d slots (%s)",
            day, organization_id, doctor_id, policy.role.value,
            summary.slots_count, summary.availability_level.value,
        )
        return summary

    def compute_week_availability(
        self,
        organization_id: str,
        doctor_id: str,
        start_date: DateLike,
        role: Union[Role, str],
        duration_minutes: Optional[int] = None,
        *,
        use_standard_rules: bool = False,
        location_id: Optional[str] = None,
        now: Optional[datetime] = None,
        locale: Optional[str] = None,
    ) -> list[DayAvailability]:
        """Seven DayAvailability records starting at ``start_date``."""
        new_request_id()
        start = as_calendar_date(start_date)
        booking_settings = self._booking_settings(organization_id)
        policy = resolve_policy(booking_settings, role, use_standard_rules)
        wall_now = self._now(booking_settings, now)

        week = aggregate_week(
            lambda day: self._evaluate_day(
                organization_id, doctor_id, day, policy, wall_now, duration_minutes, location_id,
            ),
            start,
            doctor_id,
            policy,
            locale or booking_settings.locale,
            self._thresholds,
        )
        logger.info(
            "Week from %s for %s/%s as %s: %d bookable days",
            start, organization_id, doctor_id, policy.role.value,
            sum(1 for d in week if not d.is_blocked),
        )
        return week

    def get_day_slots(
        self,
        organization_id: str,
        doctor_id: str,
        date: DateLike,
        role: Union[Role, str],
        duration_minutes: Optional[int] = None,
        *,
        use_standard_rules: bool = False,
        location_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[TimeSlot]:
        """Bookable slots of one doctor on one date, in time order."""
        day = as_calendar_date(date)
        booking_settings = self._booking_settings(organization_id)
        policy = resolve_policy(booking_settings, role, use_standard_rules)
        wall_now = self._now(booking_settings, now)
        return self._evaluate_day(
            organization_id, doctor_id, day, policy, wall_now, duration_minutes, location_id,
        ).slots

    def validate_candidate(
        self,
        date: DateLike,
        time: TimeLike,
        role: Union[Role, str],
        now: Optional[datetime] = None,
        *,
        organization_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        use_standard_rules: bool = False,
        locale: Optional[str] = None,
    ) -> ValidationResult:
        """
        Re-check one (date, time) from raw inputs.

        Without ``doctor_id`` only the date, lead-time and window rules are
        applied. With a doctor, the doctor's current appointments and
        time-off are checked too, and ``next_valid_time`` points at the
        doctor's first bookable slot that day.

        Raises:
            InvalidDateFormat: If ``date`` is malformed.
            InvalidTimeFormat: If ``time`` is malformed.
            InvalidRole: If ``role`` is not a known role.
            UnknownOrganizationError: If ``organization_id`` is given but unknown.
            UpstreamDataUnavailable: If the doctor's schedule cannot be read.
        """
        new_request_id()
        day = as_calendar_date(date)
        start = as_time_of_day(time)
        booking_settings = self._booking_settings(organization_id)
        policy = resolve_policy(booking_settings, role, use_standard_rules)
        wall_now = self._now(booking_settings, now)
        locale = locale or booking_settings.locale

        booked, time_off = [], []
        if organization_id is not None and doctor_id is not None:
            repository = self._store.for_organization(organization_id)
            booked = repository.get_booked_appointments(doctor_id, day)
            time_off = repository.get_availability_blocks(doctor_id, day)

        result = validate(
            day, start, policy, wall_now,
            booked=booked, time_off=time_off,
            duration_minutes=duration_minutes, locale=locale,
        )

        if result.reason == BlockReason.ADVANCE_NOTICE and doctor_id is not None and organization_id:
            slots = self._evaluate_day(
                organization_id, doctor_id, day, policy, wall_now, duration_minutes, None,
            ).slots
            first = slots[0].time if slots else None
            result = result.model_copy(update={"next_valid_time": first})

        logger.info(
            "Validated %s %s as %s: %s",
            day, start, policy.role.value, result.state.value,
        )
        return result

    # -- submission --------------------------------------------------------

    def book_appointment(
        self,
        organization_id: str,
        doctor_id: str,
        date: DateLike,
        time: TimeLike,
        role: Union[Role, str],
        *,
        patient_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        use_standard_rules: bool = False,
        location_id: Optional[str] = None,
        now: Optional[datetime] = None,
        locale: Optional[str] = None,
    ) -> BookingResult:
        """
        Validate and store an appointment.

        The slot is re-validated against the current time and data, then
        inserted with a check-and-insert. A booking that loses a race to
        another submission fails with the same ``conflict`` reason the
        validator would report. With ``location_id`` only that location's
        working hours (and location-less ones) count, as in the calendar.
        """
        day = as_calendar_date(date)
        start = as_time_of_day(time)
        booking_settings = self._booking_settings(organization_id)
        locale = locale or booking_settings.locale
        duration = duration_minutes or booking_settings.slot_duration_minutes

        verdict = self.validate_candidate(
            day, start, role, now,
            organization_id=organization_id,
            doctor_id=doctor_id,
            duration_minutes=duration,
            use_standard_rules=use_standard_rules,
            locale=locale,
        )
        result = BookingResult(
            success=False,
            message=verdict.message,
            reason=verdict.reason,
            doctor_id=doctor_id,
            date=day.isoformat(),
            time=start.isoformat(),
        )
        if not verdict.is_valid:
            logger.info("Booking rejected for %s %s %s: %s", doctor_id, day, start, verdict.reason.value)
            return result

        repository = self._store.for_organization(organization_id)
        blocks = working_blocks(repository.get_working_hours(doctor_id, day.day_of_week), location_id)
        offered = candidate_times(blocks, duration)
        if start not in offered:
            logger.info("Booking rejected for %s %s %s: not a working slot", doctor_id, day, start)
            return result.model_copy(update={
                "reason": BlockReason.NO_SLOTS,
                "message": describe_block_reason(BlockReason.NO_SLOTS, locale),
            })

        try:
            appointment = self._store.book(
                organization_id, doctor_id, day, start, duration, patient_id=patient_id,
            )
        except SlotConflictError as exc:
            logger.warning("Booking conflict for %s %s %s: %s", doctor_id, day, start, exc)
            return result.model_copy(update={
                "reason": BlockReason.CONFLICT,
                "message": describe_block_reason(BlockReason.CONFLICT, locale),
            })

        return result.model_copy(update={
            "success": True,
            "appointment_id": appointment.id,
            "reason": None,
            "message": f"Appointment {appointment.id} confirmed for {day} at {start}.",
            "created_at": self._clock.now(),
        })
