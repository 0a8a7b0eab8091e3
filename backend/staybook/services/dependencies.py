# backend/staybook/services/dependencies.py
"""
Dependency injection functions for services.

Usage in routes:
    booking_service: BookingService = Depends(get_booking_service)
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.deadline import Deadline
from ..database import get_db
from .booking_service import BookingService
from .payment_service import PaymentService
from .procedure_service import ProcedureService


def get_request_deadline() -> Deadline:
    """Deadline for the service call behind one API request."""
    return Deadline.after(settings.request_timeout_seconds)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_procedure_service(db: Session = Depends(get_db)) -> ProcedureService:
    """
    Dependency injection function for ProcedureService.

    The procedure service builds its booking and payment services on the
    same session so all compose steps share one transaction.
    """
    return ProcedureService(db)
