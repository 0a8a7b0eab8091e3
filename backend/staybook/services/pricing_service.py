"""Centralized pricing calculations for bookings."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ..core.exceptions import ValidationException

DateLike = Union[date, datetime]

CENTS = Decimal("0.01")
SECONDS_PER_NIGHT = 24 * 60 * 60


def count_nights(in_date: DateLike, out_date: DateLike) -> int:
    """
    Whole nights between two instants, never less than one.

    Partial days are truncated; ``out <= in`` still counts as one night.
    """
    if isinstance(in_date, datetime) != isinstance(out_date, datetime):
        in_date = _as_datetime(in_date)
        out_date = _as_datetime(out_date)
    seconds = (out_date - in_date).total_seconds()
    return max(1, int(seconds // SECONDS_PER_NIGHT))


def calculate_total_price(
    in_date: DateLike,
    out_date: DateLike,
    price_per_night: Union[Decimal, int, float, str],
) -> Decimal:
    """Flat nightly rate times nights, rounded to cents."""
    rate = _to_decimal(price_per_night)
    return (rate * count_nights(in_date, out_date)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


def _to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationException(
            "Listing nightly price is invalid",
            code="INVALID_NIGHTLY_RATE",
            details={"price_per_night": str(value)},
        ) from exc
    if not rate.is_finite():
        raise ValidationException(
            "Listing nightly price is invalid",
            code="INVALID_NIGHTLY_RATE",
            details={"price_per_night": str(value)},
        )
    return rate
