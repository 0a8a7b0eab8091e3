# backend/staybook/schemas/booking.py
"""
Booking schemas for staybook.

Date order is validated by the service layer (400), not here, so API
clients get the same error shape as any other caller.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from .base import Money, StandardizedModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Request to reserve a listing for a stay."""

    listing_id: str = Field(..., min_length=1, max_length=26)
    guest_id: str = Field(..., min_length=1, max_length=26)
    in_date: date = Field(..., description="Check-in date")
    out_date: date = Field(..., description="Check-out date (not occupied)")


class BookingUpdate(StrictRequestModel):
    """New dates for an existing booking; listing and guest never change."""

    in_date: date
    out_date: date


class BookingBatchCreate(StrictRequestModel):
    bookings: List[BookingCreate]


class BookingResponse(StandardizedModel):
    id: str
    listing_id: str
    host_id: str
    guest_id: str
    in_date: date
    out_date: date
    total_price: Money
    is_paid: bool
    status: str
    cancelled_at: Optional[datetime] = None


class BatchCreateResponse(StandardizedModel):
    created: int
