"""
Listing Repository for staybook

Read-side resource lookup for bookings: nightly price and host. Listing
CRUD itself belongs to the surrounding system.
"""

import logging

from sqlalchemy.orm import Session

from ..models.listing import Listing
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ListingRepository(BaseRepository[Listing]):
    """Repository for listing lookups."""

    def __init__(self, db: Session):
        super().__init__(db, Listing)
        self.logger = logging.getLogger(__name__)
