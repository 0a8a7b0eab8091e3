# backend/staybook/schemas/procedure.py
"""Request/response models for the compose operations."""

from datetime import date
from typing import Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel


class BookingWithPaymentCreate(StrictRequestModel):
    listing_id: str = Field(..., min_length=1, max_length=26)
    guest_id: str = Field(..., min_length=1, max_length=26)
    in_date: date
    out_date: date
    payment_method: str = Field(..., min_length=1, max_length=50)


class BookingWithPaymentResponse(StandardizedModel):
    booking_id: str
    payment_id: str


class PaymentConfirm(StrictRequestModel):
    """Optional settlement reference; one is generated when absent."""

    transaction_id: Optional[str] = Field(None, max_length=100)
