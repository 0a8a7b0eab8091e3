"""
Database models for staybook.

- Listing: the bookable resource (host, nightly price)
- Booking: a half-open date range reserved on a listing
- Payment: money movement against a booking
"""

from .booking import OVERLAP_CONSTRAINT_NAME, Booking, BookingStatus
from .listing import Listing
from .payment import REFUND_PAYMENT_METHOD, Payment, PaymentStatus

__all__ = [
    "Booking",
    "BookingStatus",
    "Listing",
    "OVERLAP_CONSTRAINT_NAME",
    "Payment",
    "PaymentStatus",
    "REFUND_PAYMENT_METHOD",
]
