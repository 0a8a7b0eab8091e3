"""Listing model: the bookable resource."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking


class Listing(Base):
    """A rentable listing with a flat nightly price."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    host_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rooms_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    beds_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking", back_populates="listing", passive_deletes=True
    )

    __table_args__ = (CheckConstraint("price_per_night > 0", name="check_listing_price_positive"),)

    def __repr__(self) -> str:
        return f"<Listing {self.id}: host={self.host_id}, price={self.price_per_night}>"
