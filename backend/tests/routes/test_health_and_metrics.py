def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] is True
    assert body["environment"] == "test"


def test_request_id_is_echoed(client) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated(client) -> None:
    assert len(client.get("/health").headers["X-Request-ID"]) == 26


def test_metrics_exposes_conflict_counter(client, listing, guest_id) -> None:
    payload = {
        "listing_id": listing.id,
        "guest_id": guest_id,
        "in_date": "2025-01-01",
        "out_date": "2025-01-03",
    }
    client.post("/api/v1/bookings", json=payload)
    client.post("/api/v1/bookings", json=payload)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'staybook_booking_conflicts_total{source="fast_path"}' in response.text
    assert "staybook_service_operation_duration_seconds" in response.text
