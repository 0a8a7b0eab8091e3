# backend/staybook/routes/v1/procedures.py
"""
Compose operation routes - API v1

Endpoints under /api/v1/procedures, each one atomic:
    POST /create-booking-with-payment - Book a stay with a pending payment
    POST /payments/{payment_id}/confirm - Complete a payment
    POST /bookings/{booking_id}/cancel-with-refund - Cancel and refund
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.params import Path

from ...core.deadline import Deadline
from ...core.exceptions import DomainException
from ...schemas.payment import PaymentResponse
from ...schemas.procedure import (
    BookingWithPaymentCreate,
    BookingWithPaymentResponse,
    PaymentConfirm,
)
from ...services.dependencies import get_procedure_service, get_request_deadline
from ...services.procedure_service import ProcedureService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["procedures-v1"])


@router.post(
    "/create-booking-with-payment",
    response_model=BookingWithPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking_with_payment(
    payload: BookingWithPaymentCreate,
    procedure_service: ProcedureService = Depends(get_procedure_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> BookingWithPaymentResponse:
    try:
        result = await asyncio.to_thread(
            procedure_service.create_booking_with_payment,
            payload.listing_id,
            payload.guest_id,
            payload.in_date,
            payload.out_date,
            payload.payment_method,
            deadline=deadline,
        )
        return BookingWithPaymentResponse(booking_id=result.booking_id, payment_id=result.payment_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/payments/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: str = Path(..., description="Payment ULID", pattern=ULID_PATH_PATTERN),
    payload: Optional[PaymentConfirm] = Body(None),
    procedure_service: ProcedureService = Depends(get_procedure_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> PaymentResponse:
    transaction_id = payload.transaction_id if payload else None
    try:
        payment = await asyncio.to_thread(
            procedure_service.confirm_payment, payment_id, transaction_id, deadline=deadline
        )
        return PaymentResponse.model_validate(payment)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/bookings/{booking_id}/cancel-with-refund", response_model=PaymentResponse)
async def cancel_booking_with_refund(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    procedure_service: ProcedureService = Depends(get_procedure_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> PaymentResponse:
    """Cancel a booking; returns the compensating refund payment."""
    try:
        refund = await asyncio.to_thread(
            procedure_service.cancel_booking_with_refund, booking_id, deadline=deadline
        )
        return PaymentResponse.model_validate(refund)
    except DomainException as e:
        handle_domain_exception(e)
