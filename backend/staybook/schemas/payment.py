# backend/staybook/schemas/payment.py
"""Payment schemas for staybook."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from .base import Money, StandardizedModel, StrictRequestModel


class PaymentCreate(StrictRequestModel):
    """
    Record a payment against a booking.

    ``amount`` is ignored for ``completed`` (booking total) and ``failed``
    (zero) and required for every other status.
    """

    booking_id: str = Field(..., min_length=1, max_length=26)
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_status: str = Field(..., min_length=1, max_length=50)
    amount: Optional[Decimal] = None
    transaction_id: Optional[str] = Field(None, max_length=100)
    paid_at: Optional[datetime] = None


class PaymentUpdate(StrictRequestModel):
    """Move a payment to a new status; omitted fields keep their stored values."""

    payment_status: str = Field(..., min_length=1, max_length=50)
    amount: Optional[Decimal] = None
    payment_method: Optional[str] = Field(None, min_length=1, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    paid_at: Optional[datetime] = None


class PaymentBatchCreate(StrictRequestModel):
    payments: List[PaymentCreate]


class PaymentResponse(StandardizedModel):
    id: str
    booking_id: str
    amount: Money
    payment_method: str
    payment_status: str
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
