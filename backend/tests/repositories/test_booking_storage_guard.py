"""Repository behaviour and the SQLite overlap triggers, without the services."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from staybook.core.exceptions import RepositoryException
from staybook.models import Booking, Payment
from staybook.repositories import RepositoryFactory
from staybook.services.base import is_overlap_violation


def _row(listing, in_day: int, out_day: int, **extra):
    return {
        "listing_id": listing.id,
        "host_id": listing.host_id,
        "guest_id": "01JGUEST000000000000000000",
        "in_date": date(2025, 1, in_day),
        "out_date": date(2025, 1, out_day),
        "total_price": Decimal("100.00"),
        **extra,
    }


def test_insert_trigger_rejects_overlap(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    repo.create(**_row(listing, 1, 3))

    with pytest.raises(IntegrityError) as exc_info:
        repo.create(**_row(listing, 2, 4))

    assert is_overlap_violation(exc_info.value)
    db.rollback()


def test_insert_trigger_allows_back_to_back(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    repo.create(**_row(listing, 1, 3))
    repo.create(**_row(listing, 3, 5))
    db.commit()
    assert db.query(Booking).count() == 2


def test_update_trigger_rejects_moving_onto_another_stay(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    repo.create(**_row(listing, 5, 7))
    moving = repo.create(**_row(listing, 1, 2))

    with pytest.raises(IntegrityError) as exc_info:
        repo.update(moving.id, out_date=date(2025, 1, 6))
    assert is_overlap_violation(exc_info.value)
    db.rollback()


def test_update_trigger_ignores_the_row_itself(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    booking = repo.create(**_row(listing, 1, 3))
    repo.update(booking.id, out_date=date(2025, 1, 4))
    db.commit()
    assert db.get(Booking, booking.id).out_date == date(2025, 1, 4)


def test_cancelled_rows_do_not_block(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    old = repo.create(**_row(listing, 1, 3))
    old.cancel()
    db.flush()
    repo.create(**_row(listing, 1, 3))
    db.commit()

    active = repo.get_active_by_listing(listing.id)
    assert len(active) == 1
    assert active[0].id != old.id


def test_check_constraint_is_not_mistaken_for_overlap(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    with pytest.raises(IntegrityError) as exc_info:
        repo.create(**_row(listing, 3, 1))
    assert not is_overlap_violation(exc_info.value)
    db.rollback()


def test_active_query_can_exclude_one_booking(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    a = repo.create(**_row(listing, 1, 3))
    b = repo.create(**_row(listing, 3, 5))
    db.commit()
    assert [x.id for x in repo.get_active_by_listing(listing.id, exclude_booking_id=a.id)] == [b.id]


def test_bulk_create_assigns_ids(db, listing) -> None:
    repo = RepositoryFactory.create_booking_repository(db)
    created = repo.bulk_create([_row(listing, 1, 2), _row(listing, 2, 3)])
    assert all(len(b.id) == 26 for b in created)

    fetched = repo.get_by_ids([b.id for b in created] + ["01JMISSING0000000000000000"])
    assert {b.id for b in fetched} == {b.id for b in created}


def test_set_is_paid_and_completed_check(db, listing) -> None:
    bookings = RepositoryFactory.create_booking_repository(db)
    payments = RepositoryFactory.create_payment_repository(db)
    booking = bookings.create(**_row(listing, 1, 3))

    assert payments.has_completed_payment(booking.id) is False
    payments.create(
        booking_id=booking.id,
        amount=Decimal("100.00"),
        payment_method="card",
        payment_status="completed",
    )
    assert payments.has_completed_payment(booking.id) is True

    bookings.set_is_paid(booking.id, True)
    assert booking.is_paid is True
    assert bookings.set_is_paid("01JMISSING0000000000000000", True) is None


def test_negative_payment_amount_is_wrapped(db, listing) -> None:
    bookings = RepositoryFactory.create_booking_repository(db)
    payments = RepositoryFactory.create_payment_repository(db)
    booking = bookings.create(**_row(listing, 1, 3))

    with pytest.raises(RepositoryException):
        payments.create(
            booking_id=booking.id,
            amount=Decimal("-1.00"),
            payment_method="card",
            payment_status="pending",
        )
    db.rollback()
    assert db.query(Payment).count() == 0


def test_listing_lookup(db, listing) -> None:
    repo = RepositoryFactory.create_listing_repository(db)
    assert repo.get_for_update(listing.id).price_per_night == Decimal("100.00")
    assert repo.get_by_id("01JMISSING0000000000000000") is None
