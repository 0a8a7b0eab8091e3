# backend/staybook/services/conflict_checker.py
"""
Conflict Checker Service for staybook

Handles booking overlap detection:
- Pure half-open interval comparisons (``[in_date, out_date)``)
- Checking a candidate stay against persisted active bookings of a listing

Two stays conflict iff ``a.in_date < b.out_date and a.out_date > b.in_date``,
so a stay may start on the day the previous one ends.
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateInterval:
    """A half-open stay, optionally tagged with the booking it belongs to."""

    in_date: date
    out_date: date
    booking_id: Optional[str] = None

    def overlaps(self, other: "DateInterval") -> bool:
        return self.in_date < other.out_date and self.out_date > other.in_date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "in_date": self.in_date.isoformat(),
            "out_date": self.out_date.isoformat(),
        }


def find_overlap(
    candidate: DateInterval, existing: Iterable[DateInterval]
) -> Optional[DateInterval]:
    """First interval in ``existing`` that overlaps ``candidate``, else None."""
    for interval in existing:
        if interval.overlaps(candidate):
            return interval
    return None


def intervals_overlap(candidate: DateInterval, existing: Iterable[DateInterval]) -> bool:
    return find_overlap(candidate, existing) is not None


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts.

    Centralizes overlap detection so single, batch and compose writes all
    apply the same rule. Callers are expected to hold the listing lock.
    """

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional BookingRepository instance
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def active_intervals(
        self, listing_id: str, exclude_booking_id: Optional[str] = None
    ) -> List[DateInterval]:
        """Persisted active stays of a listing as intervals."""
        bookings = self.repository.get_active_by_listing(listing_id, exclude_booking_id)
        return [DateInterval(b.in_date, b.out_date, b.id) for b in bookings]

    def find_conflict(
        self,
        listing_id: str,
        in_date: date,
        out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[DateInterval]:
        """
        Find a persisted active booking that overlaps the requested stay.

        Args:
            listing_id: The listing to check
            in_date: Requested check-in
            out_date: Requested check-out (not occupied)
            exclude_booking_id: Optional booking ID to exclude from check

        Returns:
            The first conflicting interval, or None
        """
        candidate = DateInterval(in_date, out_date)
        conflict = find_overlap(candidate, self.active_intervals(listing_id, exclude_booking_id))
        if conflict is not None:
            self.logger.warning(
                f"Booking conflict on listing {listing_id}: {in_date}->{out_date} "
                f"overlaps booking {conflict.booking_id}"
            )
        return conflict
