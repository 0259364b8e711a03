"""
Centralized configuration with environment variable overrides.

Organization-level booking defaults, availability density thresholds and
cache settings live here. Organizations override the booking defaults
through their stored booking settings; nothing else in the engine carries
its own copy of these numbers.
"""

import logging
import os
import re
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag (true/false, yes/no, 1/0) from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BookingDefaults:
    """Fallback booking rules for organizations without stored settings."""

    minimum_advance_minutes: int = _safe_int("DEFAULT_MINIMUM_ADVANCE_MINUTES", "1440")
    max_advance_days: int = _safe_int("DEFAULT_MAX_ADVANCE_DAYS", "90")
    slot_duration_minutes: int = _safe_int("DEFAULT_SLOT_DURATION_MINUTES", "30")
    weekend_booking_enabled: bool = _safe_bool("DEFAULT_WEEKEND_BOOKING_ENABLED", "false")
    allow_same_day_booking: bool = _safe_bool("DEFAULT_ALLOW_SAME_DAY_BOOKING", "true")
    booking_window_start: str = os.getenv("DEFAULT_BOOKING_WINDOW_START", "08:00")
    booking_window_end: str = os.getenv("DEFAULT_BOOKING_WINDOW_END", "18:00")
    timezone: str = os.getenv("DEFAULT_TIMEZONE", "America/Bogota")
    locale: str = os.getenv("DEFAULT_LOCALE", "es")


@dataclass(frozen=True)
class AvailabilityConfig:
    """Density thresholds used to classify a day's slot count."""

    level_low_max: int = _safe_int("LEVEL_LOW_MAX", "2")
    level_medium_max: int = _safe_int("LEVEL_MEDIUM_MAX", "5")


@dataclass(frozen=True)
class CacheConfig:
    """Organization settings cache."""

    settings_ttl_seconds: int = _safe_int("SETTINGS_CACHE_TTL_SECONDS", "300")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    booking: BookingDefaults = field(default_factory=BookingDefaults)
    availability: AvailabilityConfig = field(default_factory=AvailabilityConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "clinic-booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    booking = config.booking
    if not 0 <= booking.minimum_advance_minutes <= 4320:
        raise ValueError(
            "DEFAULT_MINIMUM_ADVANCE_MINUTES must be between 0 and 4320, "
            f"got {booking.minimum_advance_minutes}"
        )
    if not 1 <= booking.max_advance_days <= 365:
        raise ValueError(
            f"DEFAULT_MAX_ADVANCE_DAYS must be between 1 and 365, got {booking.max_advance_days}"
        )
    if not 5 <= booking.slot_duration_minutes <= 480:
        raise ValueError(
            "DEFAULT_SLOT_DURATION_MINUTES must be between 5 and 480, "
            f"got {booking.slot_duration_minutes}"
        )
    for name, value in [
        ("DEFAULT_BOOKING_WINDOW_START", booking.booking_window_start),
        ("DEFAULT_BOOKING_WINDOW_END", booking.booking_window_end),
    ]:
        if not _HHMM.match(value):
            raise ValueError(f"{name} must be HH:MM, got {value!r}")

    availability = config.availability
    if availability.level_low_max < 1:
        raise ValueError(f"LEVEL_LOW_MAX must be >= 1, got {availability.level_low_max}")
    if availability.level_medium_max <= availability.level_low_max:
        raise ValueError(
            "LEVEL_MEDIUM_MAX must be greater than LEVEL_LOW_MAX, "
            f"got {availability.level_medium_max} <= {availability.level_low_max}"
        )

    if config.cache.settings_ttl_seconds < 0:
        raise ValueError(
            f"SETTINGS_CACHE_TTL_SECONDS must be >= 0, got {config.cache.settings_ttl_seconds}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
