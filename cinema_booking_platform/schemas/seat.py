"""
Pydantic schemas for seat availability and holds.
"""

import enum
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SeatStatus(str, enum.Enum):
    """Live status of a seat for one showtime."""
    AVAILABLE = "available"
    HELD = "held"
    BOOKED = "booked"


class SeatAvailability(BaseModel):
    """One seat of a showtime with its derived status and price."""
    seat_id: UUID
    row: str
    number: int
    seat_type: Optional[str] = None
    price: int
    status: SeatStatus
    held_by: Optional[UUID] = None
    hold_until: Optional[datetime] = None


class SeatAvailabilityCheck(BaseModel):
    """Result of checking a set of seats; lists keep request order."""
    all_available: bool
    available_seats: List[UUID]
    unavailable_seats: List[UUID]


class SeatAvailabilitySummary(BaseModel):
    """Seat counts per status for a showtime."""
    showtime_id: UUID
    total_seats: int
    available_seats: int
    held_seats: int
    booked_seats: int


class SeatCheckRequest(BaseModel):
    """Schema for seat availability check request."""
    seat_ids: List[UUID] = Field(..., min_length=1, description="Seat IDs to check")


class SeatHoldRequest(BaseModel):
    """Schema for seat hold request."""
    user_id: UUID = Field(..., description="User placing the hold")
    seat_ids: List[UUID] = Field(..., min_length=1, description="List of seat IDs to hold")
    hold_minutes: Optional[int] = Field(
        None,
        ge=1,
        le=60,
        description="Hold duration in minutes (1-60)"
    )


class SeatReleaseRequest(BaseModel):
    """Schema for seat release request."""
    user_id: UUID
    seat_ids: List[UUID] = Field(..., min_length=1)


class SeatHoldResult(BaseModel):
    """Schema for seat hold response."""
    showtime_id: UUID
    user_id: UUID
    held_seat_ids: List[UUID]
    hold_until: datetime


class SeatReleaseResult(BaseModel):
    released: int
