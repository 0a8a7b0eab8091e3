# backend/staybook/routes/v1/payments.py
"""
Payment routes - API v1

Versioned payment endpoints under /api/v1/payments.
All business logic delegated to PaymentService.

Endpoints:
    POST / - Record a payment
    POST /batch - Import many payments in one transaction
    GET /{payment_id} - Payment details
    PUT /{payment_id} - Move a payment to a new status
    DELETE /{payment_id} - Delete a payment
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.params import Path

from ...core.deadline import Deadline
from ...core.exceptions import DomainException
from ...schemas.booking import BatchCreateResponse
from ...schemas.payment import (
    PaymentBatchCreate,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
)
from ...services.dependencies import get_payment_service, get_request_deadline
from ...services.payment_service import PaymentDraft, PaymentService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate,
    payment_service: PaymentService = Depends(get_payment_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> PaymentResponse:
    try:
        payment = await asyncio.to_thread(
            payment_service.create_payment,
            payload.booking_id,
            payload.payment_method,
            payload.payment_status,
            payload.amount,
            payload.transaction_id,
            payload.paid_at,
            deadline=deadline,
        )
        return PaymentResponse.model_validate(payment)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/batch", response_model=BatchCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_payments(
    payload: PaymentBatchCreate,
    payment_service: PaymentService = Depends(get_payment_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> BatchCreateResponse:
    drafts = [PaymentDraft(**item.model_dump()) for item in payload.payments]
    try:
        created = await asyncio.to_thread(payment_service.create_payments, drafts, deadline=deadline)
        return BatchCreateResponse(created=created)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str = Path(..., description="Payment ULID", pattern=ULID_PATH_PATTERN),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    try:
        payment = await asyncio.to_thread(payment_service.get_payment, payment_id)
        return PaymentResponse.model_validate(payment)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payload: PaymentUpdate,
    payment_id: str = Path(..., description="Payment ULID", pattern=ULID_PATH_PATTERN),
    payment_service: PaymentService = Depends(get_payment_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> PaymentResponse:
    """Move a payment to a new status; the booking's paid flag follows."""
    try:
        payment = await asyncio.to_thread(
            payment_service.update_payment,
            payment_id,
            payload.payment_status,
            payload.amount,
            payload.payment_method,
            payload.transaction_id,
            payload.paid_at,
            deadline=deadline,
        )
        return PaymentResponse.model_validate(payment)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: str = Path(..., description="Payment ULID", pattern=ULID_PATH_PATTERN),
    payment_service: PaymentService = Depends(get_payment_service),
    deadline: Deadline = Depends(get_request_deadline),
) -> Response:
    try:
        await asyncio.to_thread(payment_service.delete_payment, payment_id, deadline=deadline)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
