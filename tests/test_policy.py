"""Tests for role-dependent policy resolution and block messages."""

import pytest

from clinic_booking.dates import TimeOfDay
from clinic_booking.rules.messages import describe_block_reason, format_notice
from clinic_booking.rules.policy import (
    PRIVILEGED_ROLES,
    InvalidRole,
    Role,
    is_privileged_role,
    parse_role,
    resolve_policy,
)
from clinic_booking.schemas.availability_schema import BlockReason
from clinic_booking.schemas.settings_schema import BookingSettings


@pytest.fixture
def org_settings():
    return BookingSettings(
        minimum_advance_minutes=240,
        max_advance_days=30,
        allow_same_day_booking=False,
        weekend_booking_enabled=True,
        booking_window_start="07:00",
        booking_window_end="19:00",
    )


class TestRoles:
    def test_privileged_roles(self):
        assert PRIVILEGED_ROLES == {Role.ADMIN, Role.STAFF, Role.DOCTOR, Role.SUPERADMIN}

    def test_patient_is_not_privileged(self):
        assert not is_privileged_role("patient")

    @pytest.mark.parametrize("raw", ["admin", "ADMIN", " staff ", Role.DOCTOR])
    def test_parse_role_normalizes(self, raw):
        assert parse_role(raw) in PRIVILEGED_ROLES

    def test_unknown_role_rejected(self):
        with pytest.raises(InvalidRole, match="receptionist"):
            parse_role("receptionist")


class TestResolvePolicy:
    def test_patient_uses_org_lead_time(self, org_settings):
        policy = resolve_policy(org_settings, Role.PATIENT)
        assert policy.minimum_advance_minutes == 240
        assert not policy.is_privileged
        assert policy.applied_rule == "standard"

    def test_patient_carries_org_rules(self, org_settings):
        policy = resolve_policy(org_settings, "patient")
        assert policy.max_advance_days == 30
        assert policy.weekend_booking_enabled
        assert not policy.allow_same_day_booking
        assert policy.booking_window_start == TimeOfDay(7, 0)
        assert policy.window_label() == "07:00 - 19:00"

    @pytest.mark.parametrize("role", sorted(PRIVILEGED_ROLES, key=lambda r: r.value))
    def test_privileged_roles_have_no_lead_time(self, org_settings, role):
        policy = resolve_policy(org_settings, role)
        assert policy.minimum_advance_minutes == 0
        assert policy.is_privileged
        assert policy.applied_rule == "privileged"

    def test_privileged_may_book_same_day(self, org_settings):
        assert resolve_policy(org_settings, Role.STAFF).allow_same_day_booking

    def test_privileged_ignore_booking_window(self, org_settings):
        policy = resolve_policy(org_settings, Role.ADMIN)
        assert not policy.has_booking_window
        assert policy.window_label() == ""

    def test_privileged_still_bound_by_horizon_and_weekend(self, org_settings):
        policy = resolve_policy(org_settings, Role.ADMIN)
        assert policy.max_advance_days == 30
        assert policy.weekend_booking_enabled is True

    def test_standard_rules_override(self, org_settings):
        policy = resolve_policy(org_settings, Role.ADMIN, use_standard_rules=True)
        assert policy.minimum_advance_minutes == 240
        assert policy.role == Role.ADMIN
        assert policy.applied_rule == "standard"

    def test_resolution_is_pure(self, org_settings):
        assert resolve_policy(org_settings, "patient") == resolve_policy(org_settings, "patient")


class TestBookingSettings:
    def test_legacy_hours_are_converted(self):
        assert BookingSettings(advance_booking_hours=4).minimum_advance_minutes == 240

    def test_legacy_days_are_converted(self):
        assert BookingSettings(max_advance_booking_days=14).max_advance_days == 14

    def test_lead_time_range(self):
        with pytest.raises(ValueError):
            BookingSettings(minimum_advance_minutes=4321)

    def test_window_order(self):
        with pytest.raises(ValueError, match="booking_window_end"):
            BookingSettings(booking_window_start="18:00", booking_window_end="08:00")

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            BookingSettings(timezone="Mars/Olympus")

    def test_json_dump_round_trips(self):
        original = BookingSettings(booking_window_start="07:30")
        dumped = original.model_dump(mode="json")
        assert dumped["booking_window_start"] == "07:30"
        assert BookingSettings.model_validate(dumped) == original


class TestMessages:
    def test_no_reason_is_empty(self):
        assert describe_block_reason(None, "en") == ""

    def test_advance_notice_in_hours(self):
        message = describe_block_reason(
            BlockReason.ADVANCE_NOTICE, "en", minimum_advance_minutes=1440,
        )
        assert "24 hours" in message

    def test_advance_notice_spanish(self):
        message = describe_block_reason(
            BlockReason.ADVANCE_NOTICE, "es-CO", minimum_advance_minutes=240,
        )
        assert "4 horas" in message

    def test_elapsed_slot_wording(self):
        assert "already passed" in describe_block_reason(BlockReason.ADVANCE_NOTICE, "en", elapsed=True)

    def test_zero_lead_time_alone_is_not_elapsed(self):
        message = describe_block_reason(BlockReason.ADVANCE_NOTICE, "en", minimum_advance_minutes=0)
        assert "already passed" not in message

    @pytest.mark.parametrize("locale, expected", [
        ("en", "same-day bookings are disabled"),
        ("es", "mismo día"),
    ])
    def test_same_day_closed_wording(self, locale, expected):
        message = describe_block_reason(
            BlockReason.ADVANCE_NOTICE, locale, elapsed=True, same_day_closed=True,
        )
        assert expected in message

    def test_flags_ignored_for_other_reasons(self):
        plain = describe_block_reason(BlockReason.CONFLICT, "en")
        assert describe_block_reason(BlockReason.CONFLICT, "en", elapsed=True, same_day_closed=True) == plain

    def test_past_date_is_not_described_as_advance_notice(self):
        past = describe_block_reason(BlockReason.PAST_DATE, "es")
        notice = describe_block_reason(
            BlockReason.ADVANCE_NOTICE, "es", minimum_advance_minutes=1440,
        )
        assert past != notice
        assert "fecha pasada" in past

    def test_every_reason_has_a_message(self):
        for locale in ("en", "es"):
            for reason in BlockReason:
                assert describe_block_reason(reason, locale, 60, 90, "08:00 - 18:00")

    @pytest.mark.parametrize("minutes, locale, expected", [
        (60, "en", "1 hour"),
        (1440, "en", "24 hours"),
        (90, "en", "90 minutes"),
        (60, "es", "1 hora"),
        (45, "es", "45 minutos"),
    ])
    def test_format_notice(self, minutes, locale, expected):
        assert format_notice(minutes, locale) == expected
