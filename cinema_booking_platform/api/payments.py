"""
Payment API endpoints.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..schemas.common import ERROR_RESPONSES
from ..schemas.payment import PaymentCaptureRequest, PaymentResponse
from ..services import PaymentService
from ..utils.dependencies import get_payment_service

router = APIRouter(prefix="/payments", tags=["payments"], responses=ERROR_RESPONSES)


@router.post("/capture", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def capture_payment(
    request: PaymentCaptureRequest,
    payment_service: PaymentService = Depends(get_payment_service),
):
    """
    Record a payment for a pending booking and mark it paid.

    The amount must equal the booking total. Ticket codes are issued as
    part of the capture.
    """
    return await payment_service.capture(
        booking_id=request.booking_id,
        user_id=request.user_id,
        amount=request.amount,
        method=request.method,
        gateway_reference=request.gateway_reference,
    )


@router.get("/booking/{booking_id}", response_model=List[PaymentResponse])
async def get_booking_payments(
    booking_id: UUID,
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.get_payments(booking_id)
