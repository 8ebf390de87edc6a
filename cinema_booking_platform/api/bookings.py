"""
Booking API endpoints.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..models.booking import BookingStatus
from ..schemas.booking import (
    BookingCancelRequest,
    BookingCreateRequest,
    BookingHistoryResponse,
    BookingListResponse,
    BookingResponse,
    BookingResult,
    CancelResult,
    TicketResponse,
)
from ..schemas.common import ERROR_RESPONSES
from ..services import BookingService
from ..utils.dependencies import get_booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"], responses=ERROR_RESPONSES)
users_router = APIRouter(prefix="/users", tags=["bookings"], responses=ERROR_RESPONSES)


@router.post("", response_model=BookingResult, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingCreateRequest,
    booking_service: BookingService = Depends(get_booking_service),
):
    """
    Book seats for a showtime.

    The booking is created `pending` with one ticket per seat. It becomes
    `paid` through payment capture, or `expired` if not paid before its
    holds lapse.
    """
    return await booking_service.create_booking(
        user_id=request.user_id,
        showtime_id=request.showtime_id,
        seat_ids=request.seat_ids,
        promotion_code=request.promotion_code,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.get_booking(booking_id)


@router.get("/{booking_id}/tickets", response_model=List[TicketResponse])
async def get_booking_tickets(
    booking_id: UUID,
    booking_service: BookingService = Depends(get_booking_service),
):
    """All tickets of the booking, cancelled ones included."""
    return await booking_service.get_booking_tickets(booking_id)


@router.get("/{booking_id}/history", response_model=List[BookingHistoryResponse])
async def get_booking_history(
    booking_id: UUID,
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.get_booking_history(booking_id)


@router.post("/{booking_id}/cancel", response_model=CancelResult)
async def cancel_booking(
    booking_id: UUID,
    request: BookingCancelRequest,
    booking_service: BookingService = Depends(get_booking_service),
):
    """Cancel a pending booking. Paid bookings cannot be cancelled here."""
    return await booking_service.cancel_booking(booking_id, request.user_id)


@users_router.get("/{user_id}/bookings", response_model=BookingListResponse)
async def list_user_bookings(
    user_id: UUID,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    booking_service: BookingService = Depends(get_booking_service),
):
    bookings = await booking_service.list_user_bookings(user_id, status=status_filter, limit=limit, offset=offset)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking) for booking in bookings],
        total=len(bookings),
    )
