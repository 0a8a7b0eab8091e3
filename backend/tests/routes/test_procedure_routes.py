from staybook.core.ulid_helper import generate_ulid


def _book_with_payment(client, listing, guest_id, in_date="2025-01-01", out_date="2025-01-03"):
    return client.post(
        "/api/v1/procedures/create-booking-with-payment",
        json={
            "listing_id": listing.id,
            "guest_id": guest_id,
            "in_date": in_date,
            "out_date": out_date,
            "payment_method": "card",
        },
    )


def test_full_lifecycle(client, listing, guest_id) -> None:
    response = _book_with_payment(client, listing, guest_id)
    assert response.status_code == 201
    ids = response.json()

    response = client.post(
        f"/api/v1/procedures/payments/{ids['payment_id']}/confirm",
        json={"transaction_id": "psp-1"},
    )
    assert response.status_code == 200
    assert response.json()["payment_status"] == "completed"
    assert response.json()["transaction_id"] == "psp-1"
    assert client.get(f"/api/v1/bookings/{ids['booking_id']}").json()["is_paid"] is True

    response = client.post(f"/api/v1/procedures/bookings/{ids['booking_id']}/cancel-with-refund")
    assert response.status_code == 200
    refund = response.json()
    assert refund["payment_status"] == "refund"
    assert refund["amount"] == 200.0

    booking = client.get(f"/api/v1/bookings/{ids['booking_id']}").json()
    assert booking["status"] == "cancelled"
    assert booking["is_paid"] is False

    response = client.post(f"/api/v1/procedures/bookings/{ids['booking_id']}/cancel-with-refund")
    assert response.status_code == 409

    response = client.post(
        "/api/v1/payments",
        json={"booking_id": ids["booking_id"], "payment_method": "card", "payment_status": "completed"},
    )
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "BOOKING_CANCELLED"
    assert client.get(f"/api/v1/bookings/{ids['booking_id']}").json()["is_paid"] is False


def test_confirm_without_body_generates_reference(client, listing, guest_id) -> None:
    ids = _book_with_payment(client, listing, guest_id).json()
    response = client.post(f"/api/v1/procedures/payments/{ids['payment_id']}/confirm")
    assert response.status_code == 200
    assert response.json()["transaction_id"].startswith("TXN-")


def test_overlap_is_409(client, listing, guest_id) -> None:
    assert _book_with_payment(client, listing, guest_id).status_code == 201
    response = _book_with_payment(client, listing, guest_id, "2025-01-02", "2025-01-05")
    assert response.status_code == 409


def test_unknown_ids_are_404(client) -> None:
    assert client.post(f"/api/v1/procedures/payments/{generate_ulid()}/confirm").status_code == 404
    assert (
        client.post(f"/api/v1/procedures/bookings/{generate_ulid()}/cancel-with-refund").status_code
        == 404
    )
