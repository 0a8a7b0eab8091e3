# backend/staybook/repositories/factory.py
"""
Repository Factory for staybook

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .listing_repository import ListingRepository
    from .payment_repository import PaymentRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Services call these instead of constructing repositories directly, so a
    test can patch one place to hand out fakes.
    """

    @staticmethod
    def create_listing_repository(db: Session) -> "ListingRepository":
        """Create repository for listing lookups."""
        from .listing_repository import ListingRepository

        return ListingRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment operations."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)
