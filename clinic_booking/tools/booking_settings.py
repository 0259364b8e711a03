"""
Organization booking settings with a short-lived cache.

Settings are read from the schedule store, validated into BookingSettings
and cached per organization for ``SETTINGS_CACHE_TTL_SECONDS``. An
organization with no stored settings, or with stored settings that fail
validation, gets the configured defaults so availability keeps working.
"""

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from clinic_booking.config import settings
from clinic_booking.schemas.settings_schema import BookingSettings
from clinic_booking.tools.schedule_store import InMemoryScheduleStore

logger = logging.getLogger(__name__)


class ConfigurationMissing(LookupError):
    """Raised when an organization has never stored booking settings."""


class BookingSettingsService:
    """Per-organization BookingSettings lookup, update and cache."""

    def __init__(
        self,
        store: InMemoryScheduleStore,
        ttl_seconds: Optional[int] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._ttl = settings.cache.settings_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._monotonic = monotonic
        self._cache: dict[str, tuple[BookingSettings, float]] = {}

    def get_settings(self, organization_id: str) -> BookingSettings:
        """
        Effective settings for an organization.

        Raises:
            UnknownOrganizationError: If the organization does not exist.
        """
        cached = self._cache.get(organization_id)
        if cached is not None and self._monotonic() - cached[1] < self._ttl:
            return cached[0]

        try:
            resolved = BookingSettings.model_validate(self.load_stored(organization_id))
        except ConfigurationMissing as exc:
            logger.warning("%s, using defaults", exc)
            return BookingSettings()
        except ValidationError as exc:
            logger.error(
                "Invalid booking settings for %s, using defaults: %s",
                organization_id, exc.errors(include_url=False),
            )
            return BookingSettings()

        self._cache[organization_id] = (resolved, self._monotonic())
        return resolved

    def load_stored(self, organization_id: str) -> dict:
        """
        Raw stored settings of an organization.

        Raises:
            ConfigurationMissing: If nothing was ever stored.
            UnknownOrganizationError: If the organization does not exist.
        """
        raw = self._store.get_booking_settings(organization_id)
        if raw is None:
            raise ConfigurationMissing(f"No booking settings for {organization_id}")
        return raw

    def update_settings(self, organization_id: str, **changes) -> BookingSettings:
        """
        Merge ``changes`` into the organization's settings and store them.

        Raises:
            ValueError: If a key is unknown or the merged settings are
                invalid. Nothing is stored.
        """
        unknown = sorted(set(changes) - set(BookingSettings.model_fields))
        if unknown:
            raise ValueError(f"Unknown booking settings: {unknown}")
        current = self.get_settings(organization_id).model_dump(mode="json")
        current.update(changes)
        try:
            updated = BookingSettings.model_validate(current)
        except ValidationError as exc:
            raise ValueError(f"Invalid booking settings: {exc}") from exc

        self._store.set_booking_settings(organization_id, updated.model_dump(mode="json"))
        self._cache.pop(organization_id, None)
        logger.info("Booking settings updated for %s: %s", organization_id, sorted(changes))
        return updated

    def clear_cache(self, organization_id: Optional[str] = None) -> None:
        if organization_id is None:
            self._cache.clear()
        else:
            self._cache.pop(organization_id, None)
