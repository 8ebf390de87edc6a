"""
Seat availability and hold API endpoints.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from ..schemas.common import ERROR_RESPONSES
from ..schemas.seat import (
    SeatAvailability,
    SeatAvailabilityCheck,
    SeatAvailabilitySummary,
    SeatCheckRequest,
    SeatHoldRequest,
    SeatHoldResult,
    SeatReleaseRequest,
    SeatReleaseResult,
)
from ..services import AvailabilityService, SeatHoldService
from ..utils.dependencies import get_availability_service, get_seat_hold_service

router = APIRouter(prefix="/showtimes/{showtime_id}/seats", tags=["seats"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[SeatAvailability])
async def get_seat_availability(
    showtime_id: UUID,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """
    Get every seat of the showtime with its live status and price.

    A seat is `booked` when a valid ticket exists, `held` while an
    unexpired hold exists, and `available` otherwise.
    """
    return await availability.get_availability(showtime_id)


@router.get("/summary", response_model=SeatAvailabilitySummary)
async def get_seat_summary(
    showtime_id: UUID,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Seat counts per status."""
    return await availability.get_availability_summary(showtime_id)


@router.post("/check", response_model=SeatAvailabilityCheck)
async def check_seats(
    showtime_id: UUID,
    request: SeatCheckRequest,
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Check whether specific seats can be held right now."""
    await availability.get_showtime(showtime_id)
    return await availability.check_seats_available(showtime_id, request.seat_ids)


@router.post("/hold", response_model=SeatHoldResult, status_code=201)
async def hold_seats(
    showtime_id: UUID,
    request: SeatHoldRequest,
    ledger: SeatHoldService = Depends(get_seat_hold_service),
):
    """
    Hold seats for a user during checkout.

    All seats are held or none are; a conflict returns 409 listing the
    unavailable seats.
    """
    return await ledger.hold(showtime_id, request.seat_ids, request.user_id, hold_minutes=request.hold_minutes)


@router.post("/release", response_model=SeatReleaseResult)
async def release_seats(
    showtime_id: UUID,
    request: SeatReleaseRequest,
    ledger: SeatHoldService = Depends(get_seat_hold_service),
):
    """Release the user's holds. Releasing twice is harmless."""
    released = await ledger.release(showtime_id, request.seat_ids, request.user_id)
    return SeatReleaseResult(released=released)
