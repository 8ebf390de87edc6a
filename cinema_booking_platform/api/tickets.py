"""
Ticket finalization and validation endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from ..schemas.common import ERROR_RESPONSES
from ..schemas.ticket import GeneratedTickets, TicketValidationRequest, TicketValidationResult
from ..services import TicketService
from ..utils.dependencies import get_ticket_service

router = APIRouter(prefix="/tickets", tags=["tickets"], responses=ERROR_RESPONSES)


@router.post("/generate/{booking_id}", response_model=GeneratedTickets)
async def generate_tickets(
    booking_id: UUID,
    ticket_service: TicketService = Depends(get_ticket_service),
):
    """Issue ticket codes and QR payloads for a paid booking."""
    return await ticket_service.generate_tickets(booking_id)


@router.post("/validate", response_model=TicketValidationResult)
async def validate_ticket(
    request: TicketValidationRequest,
    ticket_service: TicketService = Depends(get_ticket_service),
):
    """Validate a scanned QR payload. Always 200; see `valid` and `message`."""
    return await ticket_service.validate_ticket(request.qr_data)
