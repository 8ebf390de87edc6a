"""
Ticket finalization and validation schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TicketInfo(BaseModel):
    """A finalized ticket as handed to the customer."""
    ticket_id: UUID
    ticket_code: str
    seat_id: UUID
    seat_label: str
    price: int
    qr_data: str


class GeneratedTickets(BaseModel):
    booking_id: UUID
    booking_reference: str
    showtime_id: UUID
    start_time: datetime
    tickets: List[TicketInfo]


class TicketValidationRequest(BaseModel):
    qr_data: str = Field(..., min_length=1, description="Base64 QR payload")


class TicketValidationResult(BaseModel):
    """Result of scanning a ticket QR payload."""
    valid: bool
    message: str
    ticket_id: Optional[UUID] = None
    ticket_code: Optional[str] = None
    seat_label: Optional[str] = None
