# backend/staybook/services/booking_service.py
"""
Booking Service for staybook

Handles the booking lifecycle:
- Single booking create/update/delete
- Batch import of bookings (all or nothing)
- Overlap fast-path checks under the listing lock
- Price derivation from the listing's nightly rate

Every write runs inside ``BaseService.transaction`` so that a database-level
overlap rejection surfaces as the same BookingConflictException as the
fast-path check.
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.deadline import Deadline, check_deadline
from ..core.exceptions import (
    BookingConflictException,
    NotFoundException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.listing import Listing
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.listing_repository import ListingRepository
from .base import BaseService
from .conflict_checker import ConflictChecker, DateInterval, find_overlap
from .pricing_service import calculate_total_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCandidate:
    """One row of a batch booking import."""

    listing_id: str
    guest_id: str
    in_date: date
    out_date: date


def validate_stay_dates(in_date: date, out_date: date, **details: Any) -> None:
    """Reject empty or inverted stays."""
    if in_date >= out_date:
        raise ValidationException(
            "Check-in date must be before check-out date",
            code="INVALID_DATE_RANGE",
            details={"in_date": in_date.isoformat(), "out_date": out_date.isoformat(), **details},
        )


class BookingService(BaseService):
    """
    Service layer for booking operations.

    The helpers ``lock_listing``, ``ensure_no_overlap`` and ``insert_booking``
    expect the caller to own the transaction; ProcedureService reuses them.
    """

    def __init__(
        self,
        db: Session,
        listing_repository: Optional[ListingRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            listing_repository: Optional ListingRepository instance
            booking_repository: Optional BookingRepository instance
            conflict_checker: Optional ConflictChecker instance
        """
        super().__init__(db)
        self.listing_repository = listing_repository or RepositoryFactory.create_listing_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.booking_repository)

    # Transaction-scoped helpers

    def lock_listing(self, listing_id: str) -> Listing:
        """Resolve a listing and hold its row lock for the rest of the transaction."""
        listing = self.listing_repository.get_for_update(listing_id)
        if listing is None:
            raise NotFoundException("Listing not found", details={"listing_id": listing_id})
        return listing

    def ensure_no_overlap(
        self,
        listing_id: str,
        in_date: date,
        out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        conflict = self.conflict_checker.find_conflict(
            listing_id, in_date, out_date, exclude_booking_id
        )
        if conflict is not None:
            prometheus_metrics.record_booking_conflict("fast_path")
            raise BookingConflictException(
                "overlapping booking",
                details={
                    "listing_id": listing_id,
                    "in_date": in_date.isoformat(),
                    "out_date": out_date.isoformat(),
                    "conflicting_booking": conflict.to_dict(),
                },
            )

    def insert_booking(
        self, listing: Listing, guest_id: str, in_date: date, out_date: date
    ) -> Booking:
        """Price and persist a booking; returns it with its assigned id."""
        return self.booking_repository.create(
            listing_id=listing.id,
            host_id=listing.host_id,
            guest_id=guest_id,
            in_date=in_date,
            out_date=out_date,
            total_price=calculate_total_price(in_date, out_date, listing.price_per_night),
            is_paid=False,
        )

    # Public operations

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        guest_id: str,
        listing_id: str,
        in_date: date,
        out_date: date,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Booking:
        """
        Create a booking for a guest.

        Args:
            guest_id: The guest making the booking
            listing_id: The listing to reserve
            in_date: Check-in date
            out_date: Check-out date (not occupied)
            deadline: Optional caller deadline

        Returns:
            The created booking

        Raises:
            ValidationException: If in_date is not before out_date
            NotFoundException: If the listing does not exist
            BookingConflictException: If the stay overlaps an active booking
        """
        self.log_operation(
            "create_booking",
            guest_id=guest_id,
            listing_id=listing_id,
            in_date=in_date,
            out_date=out_date,
        )
        validate_stay_dates(in_date, out_date)

        with self.transaction("create_booking", deadline=deadline, listing_id=listing_id):
            listing = self.lock_listing(listing_id)
            check_deadline(deadline, "create_booking")
            self.ensure_no_overlap(listing_id, in_date, out_date)
            booking = self.insert_booking(listing, guest_id, in_date, out_date)

        self.logger.info(f"Booking {booking.id} created on listing {listing_id}")
        return booking

    @BaseService.measure_operation("update_booking")
    def update_booking(
        self,
        booking_id: str,
        in_date: date,
        out_date: date,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Booking:
        """
        Move a booking to new dates, re-pricing it.

        Listing, host and guest never change. The new range is checked against
        the listing's other active bookings.
        """
        self.log_operation("update_booking", booking_id=booking_id, in_date=in_date, out_date=out_date)
        validate_stay_dates(in_date, out_date, booking_id=booking_id)

        with self.transaction("update_booking", deadline=deadline, booking_id=booking_id):
            booking = self.booking_repository.get_by_id(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found", details={"booking_id": booking_id})
            if booking.is_cancelled:
                raise ValidationException(
                    "Cannot update a cancelled booking",
                    code="BOOKING_CANCELLED",
                    details={"booking_id": booking_id},
                )

            listing = self.lock_listing(booking.listing_id)
            check_deadline(deadline, "update_booking")
            self.ensure_no_overlap(listing.id, in_date, out_date, exclude_booking_id=booking_id)

            updated = self.booking_repository.update(
                booking_id,
                in_date=in_date,
                out_date=out_date,
                total_price=calculate_total_price(in_date, out_date, listing.price_per_night),
            )

        return updated

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str, *, deadline: Optional[Deadline] = None) -> None:
        """Remove a booking and, through the foreign key cascade, its payments."""
        self.log_operation("delete_booking", booking_id=booking_id)

        with self.transaction("delete_booking", deadline=deadline, booking_id=booking_id):
            if not self.booking_repository.delete(booking_id):
                raise NotFoundException("Booking not found", details={"booking_id": booking_id})

    @BaseService.measure_operation("create_bookings")
    def create_bookings(
        self,
        candidates: Sequence[BookingCandidate],
        *,
        deadline: Optional[Deadline] = None,
    ) -> int:
        """
        Import many bookings in one transaction.

        Candidates are checked in input order against persisted bookings and
        the candidates accepted before them. The first failure aborts the
        whole batch; error details carry its zero-based ``index``.

        Returns:
            Number of bookings created
        """
        self.log_operation("create_bookings", count=len(candidates))
        if not candidates:
            return 0

        for index, candidate in enumerate(candidates):
            validate_stay_dates(candidate.in_date, candidate.out_date, index=index)

        with self.transaction("create_bookings", deadline=deadline, count=len(candidates)):
            listings = self._lock_batch_listings(candidates)
            intervals: Dict[str, List[DateInterval]] = {}
            rows: List[Dict[str, Any]] = []

            for index, candidate in enumerate(candidates):
                check_deadline(deadline, "create_bookings")
                listing = listings[candidate.listing_id]
                if listing.id not in intervals:
                    intervals[listing.id] = self.conflict_checker.active_intervals(listing.id)

                interval = DateInterval(candidate.in_date, candidate.out_date)
                conflict = find_overlap(interval, intervals[listing.id])
                if conflict is not None:
                    prometheus_metrics.record_booking_conflict("batch")
                    raise BookingConflictException(
                        "overlapping booking",
                        details={
                            "index": index,
                            "listing_id": listing.id,
                            "in_date": candidate.in_date.isoformat(),
                            "out_date": candidate.out_date.isoformat(),
                            "conflicting_booking": conflict.to_dict(),
                        },
                    )
                intervals[listing.id].append(interval)

                rows.append(
                    {
                        "listing_id": listing.id,
                        "host_id": listing.host_id,
                        "guest_id": candidate.guest_id,
                        "in_date": candidate.in_date,
                        "out_date": candidate.out_date,
                        "total_price": calculate_total_price(
                            candidate.in_date, candidate.out_date, listing.price_per_night
                        ),
                        "is_paid": False,
                    }
                )

            created = self.booking_repository.bulk_create(rows)

        self.logger.info(f"Batch created {len(created)} bookings")
        return len(created)

    def _lock_batch_listings(self, candidates: Sequence[BookingCandidate]) -> Dict[str, Listing]:
        """Lock every listing of a batch once, in id order to avoid lock cycles."""
        first_index: Dict[str, int] = {}
        for index, candidate in enumerate(candidates):
            first_index.setdefault(candidate.listing_id, index)

        listings: Dict[str, Listing] = {}
        for listing_id in sorted(first_index):
            listing = self.listing_repository.get_for_update(listing_id)
            if listing is None:
                raise NotFoundException(
                    "Listing not found",
                    details={"listing_id": listing_id, "index": first_index[listing_id]},
                )
            listings[listing_id] = listing
        return listings

    # Read accessors

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    def get_bookings_for_listing(self, listing_id: str) -> List[Booking]:
        if self.listing_repository.get_by_id(listing_id) is None:
            raise NotFoundException("Listing not found", details={"listing_id": listing_id})
        return self.booking_repository.get_by_listing(listing_id)
