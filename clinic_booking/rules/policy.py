"""
Role-dependent booking policy.

Translates an organization's booking settings and the acting user's role
into the one BookingPolicy that every later step (slot calculation, day
aggregation, submission-time validation) reads. Resolution is a pure
function of its inputs and is recomputed on every request.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from clinic_booking.dates import TimeOfDay
from clinic_booking.schemas.settings_schema import BookingSettings

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Roles that can request availability or book."""
    PATIENT = "patient"
    ADMIN = "admin"
    STAFF = "staff"
    DOCTOR = "doctor"
    SUPERADMIN = "superadmin"


# Roles exempt from the organization's lead time
PRIVILEGED_ROLES: frozenset[Role] = frozenset({
    Role.ADMIN, Role.STAFF, Role.DOCTOR, Role.SUPERADMIN,
})

STANDARD_RULE = "standard"
PRIVILEGED_RULE = "privileged"


class InvalidRole(ValueError):
    """Raised for a role string that is not a known role."""


def parse_role(value: Union[Role, str]) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        valid = [r.value for r in Role]
        raise InvalidRole(f"Unknown role {value!r}. Valid: {valid}") from None


@dataclass(frozen=True)
class BookingPolicy:
    """Effective rules for one request.

    ``minimum_advance_minutes`` is 0 under privileged rules; a slot must
    then still start strictly after ``now``. The booking window is only
    enforced under standard rules.
    """

    minimum_advance_minutes: int
    is_privileged: bool
    role: Role = Role.PATIENT
    max_advance_days: int = 90
    weekend_booking_enabled: bool = False
    allow_same_day_booking: bool = True
    booking_window_start: Optional[TimeOfDay] = None
    booking_window_end: Optional[TimeOfDay] = None
    slot_duration_minutes: int = 30

    @property
    def applied_rule(self) -> str:
        return PRIVILEGED_RULE if self.is_privileged else STANDARD_RULE

    @property
    def has_booking_window(self) -> bool:
        return self.booking_window_start is not None and self.booking_window_end is not None

    def window_label(self) -> str:
        if not self.has_booking_window:
            return ""
        return f"{self.booking_window_start} - {self.booking_window_end}"


def is_privileged_role(role: Union[Role, str]) -> bool:
    return parse_role(role) in PRIVILEGED_ROLES


def resolve_policy(
    booking_settings: BookingSettings,
    role: Union[Role, str],
    use_standard_rules: bool = False,
) -> BookingPolicy:
    """
    Build the BookingPolicy for ``role`` under ``booking_settings``.

    Args:
        booking_settings: The organization's validated settings.
        role: Acting user's role.
        use_standard_rules: Apply patient rules even to a privileged role,
            e.g. when staff books on a patient's behalf "as the patient".

    Raises:
        InvalidRole: If ``role`` is not a known role.
    """
    actor = parse_role(role)
    privileged = actor in PRIVILEGED_ROLES and not use_standard_rules

    if privileged:
        policy = BookingPolicy(
            minimum_advance_minutes=0,
            is_privileged=True,
            role=actor,
            max_advance_days=booking_settings.max_advance_days,
            weekend_booking_enabled=booking_settings.weekend_booking_enabled,
            allow_same_day_booking=True,
            slot_duration_minutes=booking_settings.slot_duration_minutes,
        )
    else:
        policy = BookingPolicy(
            minimum_advance_minutes=booking_settings.minimum_advance_minutes,
            is_privileged=False,
            role=actor,
            max_advance_days=booking_settings.max_advance_days,
            weekend_booking_enabled=booking_settings.weekend_booking_enabled,
            allow_same_day_booking=booking_settings.allow_same_day_booking,
            booking_window_start=booking_settings.booking_window_start,
            booking_window_end=booking_settings.booking_window_end,
            slot_duration_minutes=booking_settings.slot_duration_minutes,
        )

    logger.debug(
        "Policy resolved: role=%s rule=%s lead=%dmin",
        actor.value, policy.applied_rule, policy.minimum_advance_minutes,
    )
    return policy
