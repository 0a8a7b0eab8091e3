"""
Repository layer for staybook.

Repositories wrap SQLAlchemy queries per aggregate and never commit;
the service layer owns transactions.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .listing_repository import ListingRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "IRepository",
    "ListingRepository",
    "PaymentRepository",
    "RepositoryFactory",
]
