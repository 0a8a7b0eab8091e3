# backend/staybook/repositories/booking_repository.py
"""
Booking Repository for staybook

Implements data access for bookings:
- Booking CRUD operations
- Active-booking queries per listing for overlap checking
- Locking reads for the compose operations
- Settled flag writes

Integrity errors on insert/update are surfaced unwrapped so the service
layer can classify overlap-constraint violations by error code.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        """Initialize with Booking model."""
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def update(self, id: str, **kwargs: Any) -> Optional[Booking]:
        """Update a booking, exposing integrity errors for conflict handling."""
        try:
            return super().update(id, **kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def bulk_create(self, entities: List[Dict[str, Any]]) -> List[Booking]:
        try:
            return super().bulk_create(entities)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    # Overlap queries

    def get_active_by_listing(
        self, listing_id: str, exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """
        Get all non-cancelled bookings of a listing.

        Args:
            listing_id: The listing to scope to
            exclude_booking_id: Optional booking to leave out (the one being updated)

        Returns:
            Active bookings ordered by in_date
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.listing_id == listing_id,
                Booking.cancelled_at.is_(None),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.in_date).all())
        except Exception as e:
            self.logger.error(f"Error getting active bookings for listing {listing_id}: {str(e)}")
            raise RepositoryException(f"Failed to get bookings for listing: {str(e)}") from e

    def get_by_listing(self, listing_id: str) -> List[Booking]:
        """All bookings of a listing, cancelled ones included."""
        return self._execute_query(
            self._build_query().filter(Booking.listing_id == listing_id).order_by(Booking.in_date)
        )

    # Settled flag

    def set_is_paid(self, booking_id: str, is_paid: bool) -> Optional[Booking]:
        booking = self.get_by_id(booking_id)
        if booking is None:
            return None
        if booking.is_paid != is_paid:
            booking.is_paid = is_paid
            self.db.flush()
        return booking
