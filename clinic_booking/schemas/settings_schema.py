"""Per-organization booking settings."""

from typing import Optional

import pytz
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from clinic_booking.config import settings
from clinic_booking.dates import TimeOfDay, as_time_of_day

_defaults = settings.booking


class BookingSettings(BaseModel):
    """Validated booking rules stored on an organization.

    ``minimum_advance_minutes`` is the one lead time standard (patient)
    bookings must respect. Records persisted in the older
    ``advance_booking_hours`` form are accepted and converted.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    minimum_advance_minutes: int = Field(default=_defaults.minimum_advance_minutes, ge=0, le=4320)
    max_advance_days: int = Field(default=_defaults.max_advance_days, ge=1, le=365)
    slot_duration_minutes: int = Field(default=_defaults.slot_duration_minutes, ge=5, le=480)
    allow_same_day_booking: bool = _defaults.allow_same_day_booking
    weekend_booking_enabled: bool = _defaults.weekend_booking_enabled
    booking_window_start: TimeOfDay = TimeOfDay.parse(_defaults.booking_window_start)
    booking_window_end: TimeOfDay = TimeOfDay.parse(_defaults.booking_window_end)
    timezone: str = _defaults.timezone
    locale: str = _defaults.locale

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_fields(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        hours: Optional[int] = data.pop("advance_booking_hours", None)
        if hours is not None and "minimum_advance_minutes" not in data:
            data["minimum_advance_minutes"] = int(hours) * 60
        days: Optional[int] = data.pop("max_advance_booking_days", None)
        if days is not None and "max_advance_days" not in data:
            data["max_advance_days"] = days
        return data

    @field_validator("booking_window_start", "booking_window_end", mode="before")
    @classmethod
    def _parse_window(cls, value):
        return as_time_of_day(value)

    @field_serializer("booking_window_start", "booking_window_end")
    def _window_to_iso(self, value: TimeOfDay) -> str:
        return value.isoformat()

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone {value!r}")
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "BookingSettings":
        if self.booking_window_end <= self.booking_window_start:
            raise ValueError(
                f"booking_window_end {self.booking_window_end} must be after "
                f"booking_window_start {self.booking_window_start}"
            )
        return self
