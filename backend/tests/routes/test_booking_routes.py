from decimal import Decimal

from staybook.core.ulid_helper import generate_ulid


def _create(client, listing_id: str, guest_id: str, in_date: str, out_date: str):
    return client.post(
        "/api/v1/bookings",
        json={
            "listing_id": listing_id,
            "guest_id": guest_id,
            "in_date": in_date,
            "out_date": out_date,
        },
    )


def test_create_get_update_delete(client, listing, guest_id) -> None:
    response = _create(client, listing.id, guest_id, "2025-01-01", "2025-01-03")
    assert response.status_code == 201
    body = response.json()
    assert body["total_price"] == 200.0
    assert body["is_paid"] is False
    assert body["status"] == "confirmed"
    booking_id = body["id"]

    response = client.get(f"/api/v1/bookings/{booking_id}")
    assert response.status_code == 200
    assert response.json()["in_date"] == "2025-01-01"

    response = client.put(
        f"/api/v1/bookings/{booking_id}",
        json={"in_date": "2025-01-01", "out_date": "2025-01-04"},
    )
    assert response.status_code == 200
    assert response.json()["total_price"] == 300.0

    response = client.delete(f"/api/v1/bookings/{booking_id}")
    assert response.status_code == 204

    response = client.get(f"/api/v1/bookings/{booking_id}")
    assert response.status_code == 404


def test_overlap_returns_409_with_code(client, listing, guest_id) -> None:
    assert _create(client, listing.id, guest_id, "2025-01-01", "2025-01-03").status_code == 201

    response = _create(client, listing.id, generate_ulid(), "2025-01-02", "2025-01-04")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "BOOKING_CONFLICT"


def test_back_to_back_is_accepted(client, listing, guest_id) -> None:
    assert _create(client, listing.id, guest_id, "2025-01-01", "2025-01-03").status_code == 201
    response = _create(client, listing.id, guest_id, "2025-01-03", "2025-01-05")
    assert response.status_code == 201
    assert response.json()["total_price"] == 200.0


def test_inverted_dates_return_400(client, listing, guest_id) -> None:
    response = _create(client, listing.id, guest_id, "2025-01-03", "2025-01-01")
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_DATE_RANGE"


def test_unknown_listing_returns_404(client, guest_id) -> None:
    response = _create(client, generate_ulid(), guest_id, "2025-01-01", "2025-01-03")
    assert response.status_code == 404


def test_extra_fields_are_rejected(client, listing, guest_id) -> None:
    response = client.post(
        "/api/v1/bookings",
        json={
            "listing_id": listing.id,
            "guest_id": guest_id,
            "in_date": "2025-01-01",
            "out_date": "2025-01-03",
            "is_paid": True,
        },
    )
    assert response.status_code == 422


def test_batch_is_all_or_nothing(client, listing, guest_id) -> None:
    response = client.post(
        "/api/v1/bookings/batch",
        json={
            "bookings": [
                {"listing_id": listing.id, "guest_id": guest_id, "in_date": "2025-01-01", "out_date": "2025-01-03"},
                {"listing_id": listing.id, "guest_id": guest_id, "in_date": "2025-01-02", "out_date": "2025-01-04"},
            ]
        },
    )
    assert response.status_code == 409
    assert response.json()["detail"]["details"]["index"] == 1

    response = client.post(
        "/api/v1/bookings/batch",
        json={
            "bookings": [
                {"listing_id": listing.id, "guest_id": guest_id, "in_date": "2025-01-01", "out_date": "2025-01-03"},
                {"listing_id": listing.id, "guest_id": guest_id, "in_date": "2025-01-03", "out_date": "2025-01-04"},
            ]
        },
    )
    assert response.status_code == 201
    assert response.json() == {"created": 2}


def test_malformed_id_is_rejected(client) -> None:
    assert client.get("/api/v1/bookings/not-a-ulid").status_code == 422


def test_booking_payments_listing(client, listing, guest_id) -> None:
    booking_id = _create(client, listing.id, guest_id, "2025-01-01", "2025-01-03").json()["id"]
    client.post(
        "/api/v1/payments",
        json={"booking_id": booking_id, "payment_method": "card", "payment_status": "completed"},
    )

    response = client.get(f"/api/v1/bookings/{booking_id}/payments")

    assert response.status_code == 200
    payments = response.json()
    assert len(payments) == 1
    assert Decimal(str(payments[0]["amount"])) == Decimal("200")
