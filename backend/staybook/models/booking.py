# backend/staybook/models/booking.py
"""
Booking model for staybook.

A booking reserves a listing for the half-open date range
``[in_date, out_date)``: the guest leaves on ``out_date``, so another stay may
start that same day.

No two active bookings of one listing may overlap. The services check this
before writing, and the database enforces it as well:

- PostgreSQL: exclusion constraint ``bookings_no_overlap_per_listing`` over
  ``(listing_id WITH =, daterange(in_date, out_date, '[)') WITH &&)``.
- SQLite: ``BEFORE INSERT`` / ``BEFORE UPDATE`` triggers raising an ABORT with
  the same name.

Cancelled bookings (``cancelled_at`` set) release their dates.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
import logging
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    DDL,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .listing import Listing
    from .payment import Payment

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT_NAME = "bookings_no_overlap_per_listing"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base):
    """Reservation of one listing by one guest for a date range."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))

    listing_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("listings.id"), nullable=False, index=True
    )
    # Denormalized from the listing when the booking is made
    host_id: Mapped[str] = mapped_column(String(26), nullable=False)
    guest_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)

    in_date: Mapped[date] = mapped_column(Date, nullable=False)
    out_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.CONFIRMED.value
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    listing: Mapped["Listing"] = relationship("Listing", back_populates="bookings")
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("in_date < out_date", name="check_booking_date_order"),
        CheckConstraint("total_price >= 0", name="check_booking_price_non_negative"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="ck_bookings_status"),
        Index("ix_bookings_listing_dates", "listing_id", "in_date", "out_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: listing={self.listing_id}, guest={self.guest_id}, "
            f"{self.in_date}->{self.out_date}, paid={self.is_paid}, status={self.status}>"
        )

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None

    def cancel(self) -> None:
        """Mark this booking cancelled, releasing its dates."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} cancelled")


# Storage-level no-overlap guarantee, one flavour per dialect.

_PG_ENABLE_BTREE_GIST = DDL("CREATE EXTENSION IF NOT EXISTS btree_gist")

_PG_OVERLAP_CONSTRAINT = DDL(
    f"ALTER TABLE bookings ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME} "
    "EXCLUDE USING gist ("
    "listing_id WITH =, "
    "daterange(in_date, out_date, '[)') WITH &&"
    ") WHERE (cancelled_at IS NULL)"
)

_SQLITE_OVERLAP_ON_INSERT = DDL(
    f"""
    CREATE TRIGGER {OVERLAP_CONSTRAINT_NAME}_insert
    BEFORE INSERT ON bookings
    FOR EACH ROW WHEN NEW.cancelled_at IS NULL
    BEGIN
        SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}')
        WHERE EXISTS (
            SELECT 1 FROM bookings AS b
            WHERE b.listing_id = NEW.listing_id
              AND b.cancelled_at IS NULL
              AND b.in_date < NEW.out_date
              AND b.out_date > NEW.in_date
        );
    END
    """
)

_SQLITE_OVERLAP_ON_UPDATE = DDL(
    f"""
    CREATE TRIGGER {OVERLAP_CONSTRAINT_NAME}_update
    BEFORE UPDATE OF listing_id, in_date, out_date, cancelled_at ON bookings
    FOR EACH ROW WHEN NEW.cancelled_at IS NULL
    BEGIN
        SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}')
        WHERE EXISTS (
            SELECT 1 FROM bookings AS b
            WHERE b.listing_id = NEW.listing_id
              AND b.id <> NEW.id
              AND b.cancelled_at IS NULL
              AND b.in_date < NEW.out_date
              AND b.out_date > NEW.in_date
        );
    END
    """
)

event.listen(
    Booking.__table__,
    "before_create",
    _PG_ENABLE_BTREE_GIST.execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    _PG_OVERLAP_CONSTRAINT.execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    _SQLITE_OVERLAP_ON_INSERT.execute_if(dialect="sqlite"),
)
event.listen(
    Booking.__table__,
    "after_create",
    _SQLITE_OVERLAP_ON_UPDATE.execute_if(dialect="sqlite"),
)
