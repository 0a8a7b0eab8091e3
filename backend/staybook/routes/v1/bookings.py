# backend/staybook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Create a booking
    POST /batch - Import many bookings in one transaction
    GET /{booking_id} - Booking details
    PUT /{booking_id} - Move a booking to new dates
    DELETE /{booking_id} - Delete a booking and its payments
    GET /{booking_id}/payments - Payments of a booking
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from fastapi.params import Path

from ...core.deadline import Deadline
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BatchCreateResponse,
    BookingBatchCreate,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
)
from ...schemas.payment import PaymentResponse
from ...services.booking_service import BookingCandidate, BookingService
from ...services.dependencies import (
    get_booking_service,
    get_payment_service,
    get_request_deadline,
)
from ...services.payment_service import PaymentService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> BookingResponse:
    """Reserve a listing for a stay."""
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking,
            payload.guest_id,
            payload.listing_id,
            payload.in_date,
            payload.out_date,
            deadline=deadline,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/batch", response_model=BatchCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_bookings(
    payload: BookingBatchCreate,
    booking_service: BookingService = Depends(get_booking_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> BatchCreateResponse:
    """Import bookings; any failure rejects the whole batch."""
    candidates = [BookingCandidate(**item.model_dump()) for item in payload.bookings]
    try:
        created = await asyncio.to_thread(
            booking_service.create_bookings, candidates, deadline=deadline
        )
        return BatchCreateResponse(created=created)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    payload: BookingUpdate,
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> BookingResponse:
    """Move a booking to new dates; the price is recomputed."""
    try:
        booking = await asyncio.to_thread(
            booking_service.update_booking,
            booking_id,
            payload.in_date,
            payload.out_date,
            deadline=deadline,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> Response:
    try:
        await asyncio.to_thread(booking_service.delete_booking, booking_id, deadline=deadline)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}/payments", response_model=List[PaymentResponse])
async def list_booking_payments(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    payment_service: PaymentService = Depends(get_payment_service),
) -> List[PaymentResponse]:
    try:
        payments = await asyncio.to_thread(payment_service.get_payments_for_booking, booking_id)
        return [PaymentResponse.model_validate(p) for p in payments]
    except DomainException as e:
        handle_domain_exception(e)
