"""Small numeric and date helpers shared by progress and scoring."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal


def percent_of(part: int | Decimal, whole: int | Decimal) -> int:
    """Integer percentage of ``part`` in ``whole``, rounded half up.

    An empty ``whole`` yields 0 instead of a division error. The result is
    clamped to 0..100.

    Examples:
        >>> percent_of(1, 4)
        25
        >>> percent_of(1, 8)
        13
        >>> percent_of(0, 0)
        0
    """
    if whole <= 0:
        return 0
    value = (Decimal(100) * Decimal(part) / Decimal(whole)).quantize(
        Decimal(1), rounding=ROUND_HALF_UP
    )
    return max(0, min(100, int(value)))


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (the backend sends naive timestamps)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
