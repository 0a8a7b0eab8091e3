"""
Payment model for staybook.

Payments hang off a booking. ``payment_status`` is a free-form string; the
payment service treats ``completed`` and ``failed`` specially and everything
else (``pending``, ``refunded``, ``refund``, ...) as an in-between state with
explicit amount bounds.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking


class PaymentStatus:
    """Well-known payment statuses."""

    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"
    # A completed payment reversed by cancel-with-refund
    REFUNDED = "refunded"
    # The compensating row recorded by cancel-with-refund
    REFUND = "refund"


REFUND_PAYMENT_METHOD = "refund"


class Payment(Base):
    """Money movement tied to one booking."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payments")

    __table_args__ = (CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),)

    def __repr__(self) -> str:
        return (
            f"<Payment {self.id}: booking={self.booking_id}, amount={self.amount}, "
            f"status={self.payment_status}>"
        )
