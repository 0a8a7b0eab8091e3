from datetime import date, datetime
from decimal import Decimal

import pytest

from staybook.core.exceptions import ValidationException
from staybook.services.pricing_service import calculate_total_price, count_nights


def test_two_nights_at_flat_rate() -> None:
    assert calculate_total_price(date(2025, 1, 1), date(2025, 1, 3), Decimal("100")) == Decimal(
        "200.00"
    )


def test_single_night() -> None:
    assert count_nights(date(2025, 1, 1), date(2025, 1, 2)) == 1


@pytest.mark.parametrize(
    "in_date,out_date",
    [
        (date(2025, 1, 1), date(2025, 1, 1)),
        (date(2025, 1, 3), date(2025, 1, 1)),
    ],
)
def test_non_positive_span_is_clamped_to_one_night(in_date: date, out_date: date) -> None:
    assert count_nights(in_date, out_date) == 1
    assert calculate_total_price(in_date, out_date, Decimal("80.00")) == Decimal("80.00")


def test_partial_days_are_truncated() -> None:
    start = datetime(2025, 1, 1, 15, 0)
    end = datetime(2025, 1, 3, 11, 0)  # 44 hours
    assert count_nights(start, end) == 1


def test_mixed_date_and_datetime_inputs() -> None:
    assert count_nights(date(2025, 1, 1), datetime(2025, 1, 4, 0, 0)) == 3


def test_result_is_rounded_to_cents() -> None:
    total = calculate_total_price(date(2025, 1, 1), date(2025, 1, 4), "33.335")
    assert total == Decimal("100.01")


def test_month_boundary() -> None:
    assert count_nights(date(2025, 1, 30), date(2025, 2, 2)) == 3


def test_invalid_rate_is_rejected() -> None:
    with pytest.raises(ValidationException) as exc_info:
        calculate_total_price(date(2025, 1, 1), date(2025, 1, 2), "abc")
    assert exc_info.value.code == "INVALID_NIGHTLY_RATE"
