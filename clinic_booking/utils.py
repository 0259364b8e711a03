"""Shared utilities used across the booking engine."""


def language_of(locale: str) -> str:
    """Reduce a locale tag to its lowercase language subtag.

    Examples:
        >>> language_of("es-ES")
        'es'
        >>> language_of("en_US")
        'en'
    """
    return locale.strip().replace("_", "-").split("-")[0].lower()


def round_up(value: int, step: int) -> int:
    """Round ``value`` up to the next multiple of ``step``.

    Examples:
        >>> round_up(541, 30)
        570
        >>> round_up(540, 30)
        540
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    return -(-value // step) * step
