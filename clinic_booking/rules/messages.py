"""
User-facing text for blocked dates and slots.

The calendar and the submission path both render a block reason through
``describe_block_reason`` so the wording a patient sees on a greyed-out day
is the wording they get if a stale submission is rejected.
"""

from typing import Optional

from clinic_booking.config import settings
from clinic_booking.schemas.availability_schema import BlockReason
from clinic_booking.utils import language_of

REASON_MESSAGES: dict[str, dict[BlockReason, str]] = {
    "en": {
        BlockReason.PAST_DATE: "Not available - this date has already passed.",
        BlockReason.ADVANCE_NOTICE: "Not available - bookings need at least {notice} notice.",
        BlockReason.CONFLICT: "Not available - this time is already booked.",
        BlockReason.TIME_OFF: "Not available - the doctor is not seeing patients at this time.",
        BlockReason.BOOKING_HORIZON: "Not available - bookings open {days} days in advance.",
        BlockReason.WEEKEND_CLOSED: "Not available - weekend bookings are disabled.",
        BlockReason.OUTSIDE_BOOKING_WINDOW: "Not available - outside booking hours ({window}).",
        BlockReason.NO_SLOTS: "Not available - no free times on this day.",
        BlockReason.UNAVAILABLE: "Availability could not be loaded. Please try again.",
    },
    "es": {
        BlockReason.PAST_DATE: "No disponible - fecha pasada.",
        BlockReason.ADVANCE_NOTICE: "No disponible - reserva con {notice} de anticipación.",
        BlockReason.CONFLICT: "No disponible - este horario ya está ocupado.",
        BlockReason.TIME_OFF: "No disponible - el doctor no atiende en este horario.",
        BlockReason.BOOKING_HORIZON: "No disponible - solo se reserva con {days} días de anticipación.",
        BlockReason.WEEKEND_CLOSED: "No disponible - reservas de fin de semana deshabilitadas.",
        BlockReason.OUTSIDE_BOOKING_WINDOW: "No disponible - fuera del horario de reservas ({window}).",
        BlockReason.NO_SLOTS: "No disponible - sin horarios libres.",
        BlockReason.UNAVAILABLE: "No se pudo cargar la disponibilidad. Intente de nuevo.",
    },
}


# Advance-notice variants: the start time has elapsed, or same-day booking is off
ELAPSED_MESSAGES: dict[str, str] = {
    "en": "Not available - this time has already passed.",
    "es": "No disponible - este horario ya pasó.",
}

SAME_DAY_MESSAGES: dict[str, str] = {
    "en": "Not available - same-day bookings are disabled.",
    "es": "No disponible - no se permiten reservas para el mismo día.",
}


def format_notice(minutes: int, locale: str = "en") -> str:
    """Render a lead time as hours or minutes, e.g. ``24 hours`` / ``4 horas``."""
    spanish = locale.startswith("es")
    if minutes % 60 == 0:
        hours = minutes // 60
        if spanish:
            return f"{hours} hora" if hours == 1 else f"{hours} horas"
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutos" if spanish else f"{minutes} minutes"


def describe_block_reason(
    reason: Optional[BlockReason],
    locale: Optional[str] = None,
    minimum_advance_minutes: int = 0,
    max_advance_days: int = 0,
    window: str = "",
    *,
    elapsed: bool = False,
    same_day_closed: bool = False,
) -> str:
    """Human-readable message for a block reason. Empty for no reason.

    ``same_day_closed`` and ``elapsed`` pick the specific wording of an
    advance-notice rejection; other reasons ignore them.
    """
    if reason is None:
        return ""
    language = language_of(locale or settings.booking.locale)
    if reason == BlockReason.ADVANCE_NOTICE:
        if same_day_closed:
            return SAME_DAY_MESSAGES.get(language, SAME_DAY_MESSAGES["en"])
        if elapsed:
            return ELAPSED_MESSAGES.get(language, ELAPSED_MESSAGES["en"])
    table = REASON_MESSAGES.get(language, REASON_MESSAGES["en"])
    template = table[reason]
    return template.format(
        notice=format_notice(minimum_advance_minutes, language),
        days=max_advance_days,
        window=window,
    )
