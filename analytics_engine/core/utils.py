"""
Numeric and time helpers shared by the analytics services.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Callable, Optional

# Injected time source; services never read the wall clock directly.
Clock = Callable[[], datetime]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def utc_now() -> datetime:
    """Default clock: timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_decimal(value: Any, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """Convert ints, floats and numeric strings to Decimal."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps float literals like 0.3 exact
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def round_decimal(value: Decimal, places: int = 4) -> Decimal:
    """Round half-up to a fixed number of fractional digits."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def safe_divide(numerator: Decimal, denominator: Decimal, places: int = 4) -> Decimal:
    """Divide with half-up rounding; a zero denominator yields zero."""
    if denominator == ZERO:
        return round_decimal(ZERO, places)
    return round_decimal(numerator / denominator, places)


def hours_between(earlier: datetime, later: datetime) -> int:
    """Whole hours elapsed between two timestamps (truncated toward zero)."""
    if (earlier.tzinfo is None) != (later.tzinfo is None):
        # Treat naive timestamps as UTC
        if earlier.tzinfo is None:
            earlier = earlier.replace(tzinfo=timezone.utc)
        else:
            later = later.replace(tzinfo=timezone.utc)
    return int((later - earlier).total_seconds() / 3600)
