# backend/staybook/services/payment_service.py
"""
Payment Service for staybook

Applies the payment status policy and keeps ``Booking.is_paid`` in sync:

- ``completed``: amount is the booking total; settlement timestamp and
  reference are filled in when missing.
- ``failed``: amount is zero; timestamp and reference are cleared.
- any other status: the caller's amount must lie in ``(0, total]``.

A booking is paid iff at least one of its payments is completed. The flag is
recomputed inside the same transaction as every payment write.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.deadline import Deadline, check_deadline
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.ulid_helper import generate_transaction_id
from ..models.booking import Booking
from ..models.payment import Payment, PaymentStatus
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.payment_repository import PaymentRepository
from .base import BaseService
from .pricing_service import CENTS

logger = logging.getLogger(__name__)

AmountLike = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class PaymentFields:
    """Amount and settlement data derived from a requested status."""

    payment_status: str
    amount: Decimal
    transaction_id: Optional[str]
    paid_at: Optional[datetime]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "payment_status": self.payment_status,
            "amount": self.amount,
            "transaction_id": self.transaction_id,
            "paid_at": self.paid_at,
        }


@dataclass(frozen=True)
class PaymentDraft:
    """One row of a batch payment import."""

    booking_id: str
    payment_method: str
    payment_status: str
    amount: Optional[AmountLike] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


def _to_amount(value: AmountLike) -> Decimal:
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidOperation(value)
        # Raises InvalidOperation past the context precision (e.g. 1e30)
        return amount.quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationException(
            "Payment amount is not a valid money value",
            code="INVALID_PAYMENT_AMOUNT",
            details={"amount": str(value)},
        ) from exc


def ensure_booking_active(booking: Booking, **details: Any) -> None:
    """
    Reject payment writes against a cancelled booking.

    Cancellation reverses every completed payment; a later write must not
    settle the booking again.
    """
    if booking.is_cancelled:
        raise ConflictException(
            "Booking is cancelled",
            code="BOOKING_CANCELLED",
            details={"booking_id": booking.id, **details},
        )


def resolve_payment_fields(
    booking: Booking,
    payment_status: str,
    amount: Optional[AmountLike] = None,
    transaction_id: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> PaymentFields:
    """
    Apply the status policy to a requested payment state.

    Raises:
        ValidationException: For in-between statuses whose amount is missing
            or outside ``(0, booking.total_price]``
    """
    total = Decimal(booking.total_price)

    if payment_status == PaymentStatus.COMPLETED:
        return PaymentFields(
            payment_status=payment_status,
            amount=total,
            transaction_id=transaction_id or generate_transaction_id(booking.id),
            paid_at=paid_at or datetime.now(timezone.utc),
        )

    if payment_status == PaymentStatus.FAILED:
        return PaymentFields(
            payment_status=payment_status,
            amount=Decimal("0.00"),
            transaction_id=None,
            paid_at=None,
        )

    if amount is None:
        raise ValidationException(
            f"Amount is required for payment status '{payment_status}'",
            code="INVALID_PAYMENT_AMOUNT",
            details={"booking_id": booking.id, "payment_status": payment_status},
        )
    value = _to_amount(amount)
    if value <= 0 or value > total:
        raise ValidationException(
            "Payment amount must be greater than 0 and at most the booking total",
            code="INVALID_PAYMENT_AMOUNT",
            details={
                "booking_id": booking.id,
                "amount": str(value),
                "total_price": str(total),
            },
        )
    return PaymentFields(
        payment_status=payment_status,
        amount=value,
        transaction_id=transaction_id,
        paid_at=paid_at,
    )


class PaymentService(BaseService):
    """
    Service layer for payments and the booking settled flag.

    ``refresh_is_paid`` expects the caller to own the transaction;
    ProcedureService reuses it.
    """

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[BookingRepository] = None,
        payment_repository: Optional[PaymentRepository] = None,
    ):
        super().__init__(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.payment_repository = payment_repository or RepositoryFactory.create_payment_repository(db)

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    def _get_payment(self, payment_id: str, *, lock: bool = False) -> Payment:
        if lock:
            payment = self.payment_repository.get_for_update(payment_id)
        else:
            payment = self.payment_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found", details={"payment_id": payment_id})
        return payment

    def refresh_is_paid(self, booking_id: str) -> bool:
        """Recompute and store the settled flag of one booking."""
        is_paid = self.payment_repository.has_completed_payment(booking_id)
        self.booking_repository.set_is_paid(booking_id, is_paid)
        return is_paid

    @BaseService.measure_operation("recompute_is_paid")
    def recompute_is_paid(self, booking_id: str, *, deadline: Optional[Deadline] = None) -> bool:
        """
        Recompute ``Booking.is_paid`` from its payments.

        Idempotent: a second call with no writes in between stores the same value.
        """
        with self.transaction("recompute_is_paid", deadline=deadline, booking_id=booking_id):
            self._get_booking(booking_id)
            return self.refresh_is_paid(booking_id)

    @BaseService.measure_operation("create_payment")
    def create_payment(
        self,
        booking_id: str,
        payment_method: str,
        payment_status: str,
        amount: Optional[AmountLike] = None,
        transaction_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Payment:
        """
        Record a payment against a booking.

        Args:
            booking_id: The booking being paid for
            payment_method: Free-form method label (card, transfer, ...)
            payment_status: Requested status; drives the amount policy
            amount: Required for statuses other than completed/failed
            transaction_id: Settlement reference, generated for completed payments
            paid_at: Settlement timestamp, defaulted for completed payments
            deadline: Optional caller deadline

        Returns:
            The stored payment

        Raises:
            NotFoundException: If the booking does not exist
            ValidationException: If the amount violates the status policy
            ConflictException: If the booking is cancelled
        """
        self.log_operation(
            "create_payment",
            booking_id=booking_id,
            payment_status=payment_status,
        )

        with self.transaction("create_payment", deadline=deadline, booking_id=booking_id):
            booking = self._get_booking(booking_id)
            ensure_booking_active(booking)
            fields = resolve_payment_fields(booking, payment_status, amount, transaction_id, paid_at)
            payment = self.payment_repository.create(
                booking_id=booking.id,
                payment_method=payment_method,
                **fields.as_dict(),
            )
            check_deadline(deadline, "create_payment")
            self.refresh_is_paid(booking.id)

        return payment

    @BaseService.measure_operation("update_payment")
    def update_payment(
        self,
        payment_id: str,
        payment_status: str,
        amount: Optional[AmountLike] = None,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Payment:
        """
        Move a payment to a new status.

        Omitted fields keep their stored values. The payment always stays on
        the booking it was created for.
        """
        self.log_operation("update_payment", payment_id=payment_id, payment_status=payment_status)

        with self.transaction("update_payment", deadline=deadline, payment_id=payment_id):
            payment = self._get_payment(payment_id, lock=True)
            booking = self._get_booking(payment.booking_id)
            ensure_booking_active(booking, payment_id=payment_id)

            fields = resolve_payment_fields(
                booking,
                payment_status,
                amount if amount is not None else payment.amount,
                transaction_id or payment.transaction_id,
                paid_at or payment.paid_at,
            )
            changes = fields.as_dict()
            if payment_method is not None:
                changes["payment_method"] = payment_method

            updated = self.payment_repository.update(payment_id, **changes)
            check_deadline(deadline, "update_payment")
            self.refresh_is_paid(booking.id)

        return updated

    @BaseService.measure_operation("delete_payment")
    def delete_payment(self, payment_id: str, *, deadline: Optional[Deadline] = None) -> None:
        self.log_operation("delete_payment", payment_id=payment_id)

        with self.transaction("delete_payment", deadline=deadline, payment_id=payment_id):
            payment = self._get_payment(payment_id)
            booking_id = payment.booking_id
            self.payment_repository.delete(payment_id)
            self.refresh_is_paid(booking_id)

    @BaseService.measure_operation("create_payments")
    def create_payments(
        self,
        payments: Sequence[PaymentDraft],
        *,
        deadline: Optional[Deadline] = None,
    ) -> int:
        """
        Import many payments in one transaction.

        Each item goes through the status policy; the settled flag is
        recomputed once per distinct booking. Error details carry the
        zero-based ``index`` of the offending item.

        Returns:
            Number of payments created
        """
        self.log_operation("create_payments", count=len(payments))
        if not payments:
            return 0

        with self.transaction("create_payments", deadline=deadline, count=len(payments)):
            bookings: Dict[str, Booking] = {}
            rows: List[Dict[str, Any]] = []

            for index, draft in enumerate(payments):
                check_deadline(deadline, "create_payments")
                booking = bookings.get(draft.booking_id)
                if booking is None:
                    booking = self.booking_repository.get_by_id(draft.booking_id)
                    if booking is None:
                        raise NotFoundException(
                            "Booking not found",
                            details={"booking_id": draft.booking_id, "index": index},
                        )
                    ensure_booking_active(booking, index=index)
                    bookings[booking.id] = booking

                try:
                    fields = resolve_payment_fields(
                        booking,
                        draft.payment_status,
                        draft.amount,
                        draft.transaction_id,
                        draft.paid_at,
                    )
                except ValidationException as exc:
                    exc.details["index"] = index
                    raise

                rows.append(
                    {
                        "booking_id": booking.id,
                        "payment_method": draft.payment_method,
                        **fields.as_dict(),
                    }
                )

            created = self.payment_repository.bulk_create(rows)
            for booking_id in bookings:
                self.refresh_is_paid(booking_id)

        self.logger.info(f"Batch created {len(created)} payments for {len(bookings)} bookings")
        return len(created)

    # Read accessors

    def get_payment(self, payment_id: str) -> Payment:
        return self._get_payment(payment_id)

    def get_payments_for_booking(self, booking_id: str) -> List[Payment]:
        self._get_booking(booking_id)
        return self.payment_repository.get_by_booking(booking_id)
