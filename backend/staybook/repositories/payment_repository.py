# backend/staybook/repositories/payment_repository.py
"""
Payment Repository for staybook

Data access for payments. The settled flag of a booking is derived from
these rows, so the only aggregate query here is the completed-payment check.
"""

import logging
from typing import List, cast

from sqlalchemy import exists
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import Payment, PaymentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    """Repository for payment data access."""

    def __init__(self, db: Session):
        super().__init__(db, Payment)
        self.logger = logging.getLogger(__name__)

    def get_by_booking(self, booking_id: str) -> List[Payment]:
        """Payments of one booking, oldest first."""
        try:
            return cast(
                List[Payment],
                self.db.query(Payment)
                .filter(Payment.booking_id == booking_id)
                .order_by(Payment.created_at, Payment.id)
                .all(),
            )
        except Exception as e:
            self.logger.error(f"Error getting payments for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get payments for booking: {str(e)}") from e

    def get_completed_by_booking(self, booking_id: str) -> List[Payment]:
        return self._execute_query(
            self._build_query().filter(
                Payment.booking_id == booking_id,
                Payment.payment_status == PaymentStatus.COMPLETED,
            )
        )

    def has_completed_payment(self, booking_id: str) -> bool:
        """True iff at least one payment of the booking is completed."""
        try:
            query = self.db.query(
                exists().where(
                    Payment.booking_id == booking_id,
                    Payment.payment_status == PaymentStatus.COMPLETED,
                )
            )
            return bool(query.scalar())
        except Exception as e:
            self.logger.error(f"Error checking payments for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to check payments: {str(e)}") from e
