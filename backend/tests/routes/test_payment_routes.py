from staybook.core.ulid_helper import generate_ulid


def _booking(client, listing, guest_id) -> str:
    response = client.post(
        "/api/v1/bookings",
        json={
            "listing_id": listing.id,
            "guest_id": guest_id,
            "in_date": "2025-01-01",
            "out_date": "2025-01-03",
        },
    )
    return response.json()["id"]


def test_completed_payment_marks_booking_paid(client, listing, guest_id) -> None:
    booking_id = _booking(client, listing, guest_id)

    response = client.post(
        "/api/v1/payments",
        json={"booking_id": booking_id, "payment_method": "card", "payment_status": "completed"},
    )

    assert response.status_code == 201
    payment = response.json()
    assert payment["amount"] == 200.0
    assert payment["transaction_id"].startswith(f"TXN-{booking_id}-")
    assert client.get(f"/api/v1/bookings/{booking_id}").json()["is_paid"] is True

    assert client.delete(f"/api/v1/payments/{payment['id']}").status_code == 204
    assert client.get(f"/api/v1/bookings/{booking_id}").json()["is_paid"] is False


def test_out_of_range_amount_returns_400(client, listing, guest_id) -> None:
    booking_id = _booking(client, listing, guest_id)
    response = client.post(
        "/api/v1/payments",
        json={
            "booking_id": booking_id,
            "payment_method": "card",
            "payment_status": "pending",
            "amount": "250.00",
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_PAYMENT_AMOUNT"


def test_update_payment_status(client, listing, guest_id) -> None:
    booking_id = _booking(client, listing, guest_id)
    payment_id = client.post(
        "/api/v1/payments",
        json={
            "booking_id": booking_id,
            "payment_method": "card",
            "payment_status": "pending",
            "amount": 50,
        },
    ).json()["id"]

    response = client.put(f"/api/v1/payments/{payment_id}", json={"payment_status": "failed"})

    assert response.status_code == 200
    assert response.json()["amount"] == 0.0
    assert client.get(f"/api/v1/payments/{payment_id}").json()["payment_status"] == "failed"


def test_unknown_payment_returns_404(client) -> None:
    assert client.get(f"/api/v1/payments/{generate_ulid()}").status_code == 404
    assert client.delete(f"/api/v1/payments/{generate_ulid()}").status_code == 404


def test_batch_import(client, listing, guest_id) -> None:
    booking_id = _booking(client, listing, guest_id)
    response = client.post(
        "/api/v1/payments/batch",
        json={
            "payments": [
                {"booking_id": booking_id, "payment_method": "card", "payment_status": "pending", "amount": 10},
                {"booking_id": booking_id, "payment_method": "card", "payment_status": "completed"},
            ]
        },
    )
    assert response.status_code == 201
    assert response.json() == {"created": 2}
    assert client.get(f"/api/v1/bookings/{booking_id}").json()["is_paid"] is True


def test_amount_beyond_money_precision_returns_400(client, listing, guest_id) -> None:
    booking_id = _booking(client, listing, guest_id)
    response = client.post(
        "/api/v1/payments",
        json={
            "booking_id": booking_id,
            "payment_method": "card",
            "payment_status": "pending",
            "amount": "1e30",
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_PAYMENT_AMOUNT"
