# backend/tests/conftest.py
"""
Pytest configuration for staybook.

Every test gets a fresh in-memory SQLite database with the full schema,
overlap triggers included. Route tests share that session with the app
through a ``get_db`` override.
"""

import os
import sys

# Set test configuration BEFORE any staybook imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from staybook.core.ulid_helper import generate_ulid
from staybook.database import get_db
from staybook.database.engines import create_db_engine
from staybook.init_db import drop_db, init_db
from staybook.main import app
from staybook.models import Booking, Listing
from staybook.monitoring.prometheus_metrics import REGISTRY


@pytest.fixture(scope="function")
def engine():
    """Per-test in-memory database with the schema created."""
    test_engine = create_db_engine("sqlite://", pool_name="test")
    init_db(test_engine)
    yield test_engine
    drop_db(test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Create a new database session for each test."""
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_listing(db: Session) -> Callable[..., Listing]:
    """Factory for persisted listings (100.00 per night unless told otherwise)."""

    def _make(
        price_per_night: Decimal = Decimal("100.00"),
        host_id: Optional[str] = None,
    ) -> Listing:
        listing = Listing(
            host_id=host_id or generate_ulid(),
            address="1 Harbour Road",
            price_per_night=price_per_night,
        )
        db.add(listing)
        db.commit()
        return listing

    return _make


@pytest.fixture
def listing(make_listing) -> Listing:
    return make_listing()


@pytest.fixture
def guest_id() -> str:
    return generate_ulid()


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    """Insert a booking row directly, bypassing the service checks."""

    def _make(listing: Listing, in_date: date, out_date: date, **overrides) -> Booking:
        booking = Booking(
            listing_id=listing.id,
            host_id=listing.host_id,
            guest_id=overrides.pop("guest_id", generate_ulid()),
            in_date=in_date,
            out_date=out_date,
            total_price=overrides.pop("total_price", Decimal("200.00")),
            is_paid=overrides.pop("is_paid", False),
            **overrides,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture(scope="function")
def client(db: Session):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Don't use context manager - lifespan would touch the default engine
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def metric_value() -> Callable[..., float]:
    """Read a sample from the staybook Prometheus registry (0 when absent)."""

    def _read(name: str, **labels: str) -> float:
        value = REGISTRY.get_sample_value(name, labels)
        return value or 0.0

    return _read
