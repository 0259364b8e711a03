"""Tests for configuration loading and validation."""

import pytest

from clinic_booking.config import (
    AppConfig,
    AvailabilityConfig,
    BookingDefaults,
    CacheConfig,
    _safe_bool,
    _safe_int,
    _validate_config,
)


def _booking(**overrides) -> BookingDefaults:
    booking = BookingDefaults.__new__(BookingDefaults)
    values = dict(
        minimum_advance_minutes=1440,
        max_advance_days=90,
        slot_duration_minutes=30,
        weekend_booking_enabled=False,
        allow_same_day_booking=True,
        booking_window_start="08:00",
        booking_window_end="18:00",
        timezone="America/Bogota",
        locale="es",
    )
    values.update(overrides)
    for name, value in values.items():
        object.__setattr__(booking, name, value)
    return booking


def _config(booking=None, availability=None, cache=None) -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "booking", booking or BookingDefaults())
    object.__setattr__(config, "availability", availability or AvailabilityConfig())
    object.__setattr__(config, "cache", cache or CacheConfig())
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "service_name", "test")
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    @pytest.mark.parametrize("minutes", [-1, 4321])
    def test_lead_time_out_of_range(self, minutes):
        with pytest.raises(ValueError, match="DEFAULT_MINIMUM_ADVANCE_MINUTES"):
            _validate_config(_config(booking=_booking(minimum_advance_minutes=minutes)))

    def test_lead_time_bounds_accepted(self):
        _validate_config(_config(booking=_booking(minimum_advance_minutes=0)))
        _validate_config(_config(booking=_booking(minimum_advance_minutes=4320)))

    def test_horizon_out_of_range(self):
        with pytest.raises(ValueError, match="DEFAULT_MAX_ADVANCE_DAYS"):
            _validate_config(_config(booking=_booking(max_advance_days=0)))

    def test_slot_duration_out_of_range(self):
        with pytest.raises(ValueError, match="DEFAULT_SLOT_DURATION_MINUTES"):
            _validate_config(_config(booking=_booking(slot_duration_minutes=1)))

    @pytest.mark.parametrize("value", ["8am", "24:00", "08:60", ""])
    def test_window_must_be_hhmm(self, value):
        with pytest.raises(ValueError, match="DEFAULT_BOOKING_WINDOW_START"):
            _validate_config(_config(booking=_booking(booking_window_start=value)))

    def test_level_thresholds_must_increase(self):
        availability = AvailabilityConfig.__new__(AvailabilityConfig)
        object.__setattr__(availability, "level_low_max", 5)
        object.__setattr__(availability, "level_medium_max", 5)

        with pytest.raises(ValueError, match="LEVEL_MEDIUM_MAX"):
            _validate_config(_config(availability=availability))

    def test_level_low_must_be_positive(self):
        availability = AvailabilityConfig.__new__(AvailabilityConfig)
        object.__setattr__(availability, "level_low_max", 0)
        object.__setattr__(availability, "level_medium_max", 5)

        with pytest.raises(ValueError, match="LEVEL_LOW_MAX"):
            _validate_config(_config(availability=availability))

    def test_negative_ttl(self):
        cache = CacheConfig.__new__(CacheConfig)
        object.__setattr__(cache, "settings_ttl_seconds", -1)

        with pytest.raises(ValueError, match="SETTINGS_CACHE_TTL_SECONDS"):
            _validate_config(_config(cache=cache))


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("CLINIC_TEST_INT", "ten")
        with pytest.raises(ValueError, match="CLINIC_TEST_INT"):
            _safe_int("CLINIC_TEST_INT", "1")

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("YES", True), ("1", True), ("on", True),
        ("false", False), ("No", False), ("0", False), (" off ", False),
    ])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("CLINIC_TEST_BOOL", raw)
        assert _safe_bool("CLINIC_TEST_BOOL", "false") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("CLINIC_TEST_BOOL", "maybe")
        with pytest.raises(ValueError, match="CLINIC_TEST_BOOL"):
            _safe_bool("CLINIC_TEST_BOOL", "false")
