"""Normalization of structured durations into whole seconds."""
from decimal import Decimal

from .models import Duration
from . import config

SECONDS_PER_UNIT = {
    "years": Decimal(365 * 86400),
    "months": Decimal(30 * 86400),
    "weeks": Decimal(7 * 86400),
    "days": Decimal(86400),
    "hours": Decimal(3600),
    "minutes": Decimal(60),
    "seconds": Decimal(1),
    "milliseconds": Decimal("0.001"),
}

DEFAULT_DURATION = Duration(days=1)


class InvalidDurationError(ValueError):
    """Raised when a duration does not resolve to a positive number of seconds."""
    pass


def duration_to_seconds(duration: Duration) -> int:
    """
    Normalizes a structured duration into whole seconds.

    Months and years use fixed lengths of 30 and 365 days. Sub-second remainders
    are truncated. Units are summed as decimals so that values such as 4.35 hours
    resolve to exactly 15660 seconds.
    """
    total = Decimal(0)
    for unit, seconds in SECONDS_PER_UNIT.items():
        value = getattr(duration, unit)
        if value:
            total += Decimal(str(value)) * seconds

    if not total.is_finite():
        raise InvalidDurationError(f"Duration must be finite, got {duration.model_dump(exclude_none=True)}")
    if total > config.MAX_DURATION_SECONDS:
        raise InvalidDurationError(
            f"Duration must be at most {config.MAX_DURATION_SECONDS} seconds, got {duration.model_dump(exclude_none=True)}"
        )

    total_seconds = int(total)
    if total_seconds <= 0:
        raise InvalidDurationError(f"Duration must be at least one second, got {duration.model_dump(exclude_none=True)}")
    return total_seconds
