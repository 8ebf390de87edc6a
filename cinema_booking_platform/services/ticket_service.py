"""
Ticket finalization: codes and QR payloads for paid bookings, and
validation of scanned payloads at the door.
"""

import base64
import binascii
import json
import logging
import secrets
import time
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Booking, BookingStatus, Showtime, Ticket, TicketStatus
from ..schemas.ticket import GeneratedTickets, TicketInfo, TicketValidationResult
from ..utils.clock import as_utc, utcnow
from ..utils.exceptions import BookingNotFoundError, InvalidBookingStateError

logger = logging.getLogger(__name__)


def generate_ticket_code() -> str:
    """``TK`` + last six digits of the epoch millis + six hex characters."""
    millis = str(int(time.time() * 1000))
    return f"TK{millis[-6:]}{secrets.token_hex(3).upper()}"


def generate_booking_reference(booking_id: UUID) -> str:
    millis = str(int(time.time() * 1000))
    return f"BK{millis[-4:]}{booking_id.hex[:8].upper()}"


def encode_qr_data(payload: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload, separators=(",", ":")).encode()).decode()


def decode_qr_data(qr_data: str) -> Dict[str, Any]:
    """
    Decode a QR payload.

    Raises:
        ValueError: If the payload is not base64-encoded JSON with the ticket keys
    """
    try:
        payload = json.loads(base64.b64decode(qr_data, validate=True))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError("Invalid QR code format") from e

    if not isinstance(payload, dict) or not {"t", "b", "c"} <= payload.keys():
        raise ValueError("Invalid QR code format")
    return payload


class TicketService:
    """Service for finalizing and validating tickets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def generate_tickets(self, booking_id: UUID) -> GeneratedTickets:
        """
        Assign ticket codes to the valid tickets of a paid booking and build
        their QR payloads. Tickets that already have a code keep it.

        Raises:
            BookingNotFoundError: If booking is not found
            InvalidBookingStateError: If the booking is not paid
        """
        try:
            result = await self.db.execute(
                select(Booking)
                .options(selectinload(Booking.showtime))
                .where(Booking.id == booking_id)
            )
            booking = result.scalar_one_or_none()
            if not booking:
                raise BookingNotFoundError(str(booking_id))
            if booking.status != BookingStatus.PAID:
                raise InvalidBookingStateError(
                    str(booking_id),
                    booking.status.value,
                    "Can only generate tickets for paid bookings",
                )

            tickets_result = await self.db.execute(
                select(Ticket)
                .options(selectinload(Ticket.seat))
                .where(and_(Ticket.booking_id == booking_id, Ticket.status == TicketStatus.VALID))
                .order_by(Ticket.created_at, Ticket.id)
            )
            tickets = list(tickets_result.scalars().all())

            issued = 0
            for ticket in tickets:
                if ticket.ticket_code is None:
                    ticket.ticket_code = generate_ticket_code()
                    issued += 1
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if issued:
            logger.info(f"Issued {issued} ticket codes for booking {booking_id}")

        return GeneratedTickets(
            booking_id=booking.id,
            booking_reference=generate_booking_reference(booking.id),
            showtime_id=booking.showtime_id,
            start_time=as_utc(booking.showtime.start_time),
            tickets=[
                TicketInfo(
                    ticket_id=ticket.id,
                    ticket_code=ticket.ticket_code,
                    seat_id=ticket.seat_id,
                    seat_label=ticket.seat.label,
                    price=ticket.price,
                    qr_data=encode_qr_data({
                        "t": str(ticket.id),
                        "b": str(booking.id),
                        "c": ticket.ticket_code,
                        "s": str(booking.showtime_id),
                        "seat": str(ticket.seat_id),
                        "ts": int(time.time() * 1000),
                    }),
                )
                for ticket in tickets
            ],
        )

    async def validate_ticket(self, qr_data: str) -> TicketValidationResult:
        """Check a scanned QR payload against the stored ticket. Read-only."""
        try:
            payload = decode_qr_data(qr_data)
            ticket_id = UUID(str(payload["t"]))
        except ValueError:
            return TicketValidationResult(valid=False, message="Invalid QR code format")

        result = await self.db.execute(
            select(Ticket)
            .options(
                selectinload(Ticket.booking),
                selectinload(Ticket.seat),
                selectinload(Ticket.showtime),
            )
            .where(Ticket.id == ticket_id)
        )
        ticket: Optional[Ticket] = result.scalar_one_or_none()
        # End the read transaction; loaded attributes survive a commit
        await self.db.commit()

        if not ticket:
            return TicketValidationResult(valid=False, message="Ticket not found")

        def reject(message: str) -> TicketValidationResult:
            return TicketValidationResult(
                valid=False,
                message=message,
                ticket_id=ticket.id,
                ticket_code=ticket.ticket_code,
                seat_label=ticket.seat.label,
            )

        if ticket.status != TicketStatus.VALID:
            return reject("Ticket has been cancelled")
        if ticket.ticket_code is None or ticket.ticket_code != payload["c"]:
            return reject("Ticket code does not match")
        if ticket.booking.status != BookingStatus.PAID:
            return reject("Booking is not paid")

        showtime: Showtime = ticket.showtime
        if utcnow() > as_utc(showtime.start_time):
            return reject("Ticket has expired (showtime passed)")

        return TicketValidationResult(
            valid=True,
            message="Ticket is valid",
            ticket_id=ticket.id,
            ticket_code=ticket.ticket_code,
            seat_label=ticket.seat.label,
        )
