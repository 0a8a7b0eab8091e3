# backend/staybook/services/procedure_service.py
"""
Procedure Service for staybook

Multi-entity operations that succeed or fail as one unit:
- book a stay and open its pending payment
- confirm a payment
- cancel a booking and record its refund

Each runs in a single transaction at ``settings.compose_isolation_level``.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.deadline import Deadline, check_deadline
from ..core.exceptions import ConflictException, NotFoundException
from ..core.ulid_helper import generate_refund_reference
from ..models.booking import Booking
from ..models.payment import REFUND_PAYMENT_METHOD, Payment, PaymentStatus
from .base import BaseService
from .booking_service import BookingService, validate_stay_dates
from .payment_service import PaymentService, ensure_booking_active, resolve_payment_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingWithPaymentResult:
    booking_id: str
    payment_id: str


class ProcedureService(BaseService):
    """Compose operations over bookings and payments."""

    def __init__(
        self,
        db: Session,
        booking_service: Optional[BookingService] = None,
        payment_service: Optional[PaymentService] = None,
    ):
        super().__init__(db)
        self.booking_service = booking_service or BookingService(db)
        self.payment_service = payment_service or PaymentService(
            db, booking_repository=self.booking_service.booking_repository
        )
        self.booking_repository = self.booking_service.booking_repository
        self.payment_repository = self.payment_service.payment_repository

    def _lock_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("create_booking_with_payment")
    def create_booking_with_payment(
        self,
        listing_id: str,
        guest_id: str,
        in_date: date,
        out_date: date,
        payment_method: str,
        *,
        deadline: Optional[Deadline] = None,
    ) -> BookingWithPaymentResult:
        """
        Book a stay and open a pending payment for its full price.

        Either both rows exist afterwards or neither does.

        Raises:
            ValidationException: If in_date is not before out_date
            NotFoundException: If the listing does not exist
            BookingConflictException: If the stay overlaps an active booking
        """
        operation = "create_booking_with_payment"
        self.log_operation(operation, listing_id=listing_id, guest_id=guest_id)
        validate_stay_dates(in_date, out_date)

        with self.transaction(
            operation,
            deadline=deadline,
            isolation_level=settings.compose_isolation_level,
            listing_id=listing_id,
        ):
            listing = self.booking_service.lock_listing(listing_id)
            self.booking_service.ensure_no_overlap(listing_id, in_date, out_date)
            check_deadline(deadline, operation)

            booking = self.booking_service.insert_booking(listing, guest_id, in_date, out_date)
            fields = resolve_payment_fields(booking, PaymentStatus.PENDING, booking.total_price)
            payment = self.payment_repository.create(
                booking_id=booking.id,
                payment_method=payment_method,
                **fields.as_dict(),
            )
            check_deadline(deadline, operation)
            self.payment_service.refresh_is_paid(booking.id)

            result = BookingWithPaymentResult(booking_id=booking.id, payment_id=payment.id)

        self.logger.info(
            f"Booking {result.booking_id} created with pending payment {result.payment_id}"
        )
        return result

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(
        self,
        payment_id: str,
        transaction_id: Optional[str] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Payment:
        """
        Mark a payment completed and settle its booking.

        The reference is the supplied one, else the stored one, else a fresh
        ``TXN-`` reference.

        Raises:
            NotFoundException: If the payment (or its booking) does not exist
            ConflictException: If the booking has been cancelled
        """
        operation = "confirm_payment"
        self.log_operation(operation, payment_id=payment_id)

        with self.transaction(
            operation,
            deadline=deadline,
            isolation_level=settings.compose_isolation_level,
            payment_id=payment_id,
        ):
            payment = self.payment_repository.get_for_update(payment_id)
            if payment is None:
                raise NotFoundException("Payment not found", details={"payment_id": payment_id})
            booking = self._lock_booking(payment.booking_id)
            ensure_booking_active(booking, payment_id=payment_id)
            check_deadline(deadline, operation)

            fields = resolve_payment_fields(
                booking,
                PaymentStatus.COMPLETED,
                transaction_id=transaction_id or payment.transaction_id,
                paid_at=payment.paid_at,
            )
            payment = self.payment_repository.update(payment_id, **fields.as_dict())
            self.payment_service.refresh_is_paid(booking.id)

        return payment

    @BaseService.measure_operation("cancel_booking_with_refund")
    def cancel_booking_with_refund(
        self, booking_id: str, *, deadline: Optional[Deadline] = None
    ) -> Payment:
        """
        Cancel a booking and reverse what was paid for it.

        Completed payments move to ``refunded``; one ``refund`` row records
        the reversed total (zero if nothing was paid). The booking's dates are
        released and it is no longer paid.

        Returns:
            The compensating refund payment

        Raises:
            NotFoundException: If the booking does not exist
            ConflictException: If the booking is already cancelled
        """
        operation = "cancel_booking_with_refund"
        self.log_operation(operation, booking_id=booking_id)

        with self.transaction(
            operation,
            deadline=deadline,
            isolation_level=settings.compose_isolation_level,
            booking_id=booking_id,
        ):
            booking = self._lock_booking(booking_id)
            if booking.is_cancelled:
                raise ConflictException(
                    "Booking is already cancelled",
                    code="BOOKING_ALREADY_CANCELLED",
                    details={"booking_id": booking_id},
                )

            refunded_total = Decimal("0.00")
            for payment in self.payment_repository.get_completed_by_booking(booking_id):
                refunded_total += Decimal(payment.amount)
                payment.payment_status = PaymentStatus.REFUNDED
            check_deadline(deadline, operation)

            refund = self.payment_repository.create(
                booking_id=booking_id,
                amount=refunded_total,
                payment_method=REFUND_PAYMENT_METHOD,
                payment_status=PaymentStatus.REFUND,
                transaction_id=generate_refund_reference(booking_id),
                paid_at=datetime.now(timezone.utc),
            )

            booking.cancel()
            self.db.flush()
            self.payment_service.refresh_is_paid(booking_id)

        self.logger.info(f"Booking {booking_id} cancelled, refunded {refunded_total}")
        return refund
