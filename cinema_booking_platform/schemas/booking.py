"""
Booking-related Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models.booking import BookingStatus
from ..models.booking_history import BookingAction
from ..models.ticket import TicketStatus


class BookingCreateRequest(BaseModel):
    """Request schema for creating a booking."""
    user_id: UUID = Field(..., description="User making the booking")
    showtime_id: UUID = Field(..., description="Showtime to book")
    seat_ids: List[UUID] = Field(..., min_length=1, description="Seats to book")
    promotion_code: Optional[str] = Field(None, max_length=50, description="Optional promotion code")

    @field_validator("seat_ids")
    @classmethod
    def validate_unique_seats(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("Duplicate seat IDs are not allowed")
        return v


class BookingCancelRequest(BaseModel):
    """Request schema for cancelling a booking."""
    user_id: UUID = Field(..., description="Owner of the booking")


class TicketResponse(BaseModel):
    """Response schema for a ticket."""
    id: UUID
    booking_id: UUID
    showtime_id: UUID
    seat_id: UUID
    price: int
    status: TicketStatus
    ticket_code: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    """Response schema for booking data."""
    id: UUID
    user_id: UUID
    showtime_id: UUID
    promotion_id: Optional[UUID] = None
    subtotal: int
    discount_amount: int
    total_amount: int
    status: BookingStatus
    booking_time: datetime
    hold_expires_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingResult(BaseModel):
    """Outcome of a successful booking."""
    booking: BookingResponse
    tickets: List[TicketResponse]
    subtotal: int
    discount: int
    total_amount: int


class CancelResult(BaseModel):
    """Outcome of a booking cancellation."""
    success: bool
    message: str


class BookingListResponse(BaseModel):
    """Response schema for a list of bookings."""
    bookings: List[BookingResponse]
    total: int


class BookingHistoryResponse(BaseModel):
    """Response schema for booking history entries."""
    id: UUID
    booking_id: UUID
    action: BookingAction
    details: Optional[str] = None
    performed_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
