"""
Booking orchestrator: turns a seat selection into a pending booking with
tickets, and drives it to paid, cancelled or expired.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, desc, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import (
    Booking,
    BookingAction,
    BookingHistory,
    BookingStatus,
    Promotion,
    Ticket,
    TicketStatus,
    User,
)
from ..schemas.booking import BookingResponse, BookingResult, CancelResult, TicketResponse
from ..utils.clock import utcnow
from ..utils.exceptions import (
    AuthorizationError,
    BookingNotFoundError,
    InvalidBookingStateError,
    InvalidPromotionError,
    ResourceNotFoundError,
    SeatsUnavailableError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from .availability_service import AvailabilityService
from .pricing_service import PricingService, compute_discount, compute_total
from .seat_hold_service import SeatHoldService
from .ticket_service import TicketService

logger = logging.getLogger(__name__)


class BookingService:
    """Service for creating bookings and moving them through their lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        availability: Optional[AvailabilityService] = None,
        ledger: Optional[SeatHoldService] = None,
        pricing: Optional[PricingService] = None,
    ):
        self.session = session
        self.settings = get_settings()
        self.availability = availability or AvailabilityService(session)
        self.ledger = ledger or SeatHoldService(session, availability=self.availability)
        self.pricing = pricing or PricingService(session)

    async def create_booking(
        self,
        user_id: UUID,
        showtime_id: UUID,
        seat_ids: Sequence[UUID],
        promotion_code: Optional[str] = None,
    ) -> BookingResult:
        """
        Book seats for a showtime.

        The seats are held for the user first; the hold insert is what
        decides a race between two buyers. Pricing, the booking row, its
        tickets and the hold confirmation then commit together. If anything
        after the hold fails, this attempt's holds are released before the
        error propagates.

        Args:
            user_id: ID of the user making the booking
            showtime_id: ID of the showtime
            seat_ids: Seats to book (no duplicates)
            promotion_code: Optional promotion code

        Returns:
            The pending booking with its tickets and amounts

        Raises:
            ShowtimeNotFoundError: If the showtime does not exist
            SeatNotFoundError: If a seat does not belong to the showtime's room
            SeatsUnavailableError: If any seat is booked or held
            InvalidPromotionError: For a non-applicable code in strict mode
            ValidationError: If the seat selection is malformed
        """
        seat_ids = list(seat_ids)
        self._validate_seat_selection(seat_ids)

        logger.info(f"Creating booking for user {user_id}, showtime {showtime_id}, seats {len(seat_ids)}")

        try:
            await self._get_user(user_id)
            showtime = await self.availability.get_showtime(showtime_id)
            seats = await self.availability.get_seats(showtime, seat_ids)
            check = await self.availability.check_seats_available(showtime_id, seat_ids)
        except Exception:
            await self.session.rollback()
            raise

        if not check.all_available:
            await self.session.rollback()
            raise SeatsUnavailableError(check.unavailable_seats, showtime_id)

        hold = await self.ledger.hold(
            showtime_id,
            seat_ids,
            user_id,
            hold_minutes=self.settings.booking_hold_timeout_minutes,
        )

        try:
            priced, subtotal = self.pricing.price_seats(showtime, seats)
            promotion = await self.pricing.find_applicable_promotion(promotion_code)
            discount = compute_discount(promotion, subtotal)
            total = compute_total(subtotal, discount)

            booking = Booking(
                user_id=user_id,
                showtime_id=showtime_id,
                promotion_id=promotion.id if promotion else None,
                subtotal=subtotal,
                discount_amount=discount,
                total_amount=total,
                status=BookingStatus.PENDING,
                booking_time=utcnow(),
                hold_expires_at=hold.hold_until,
            )
            self.session.add(booking)
            await self.session.flush()

            tickets = [
                Ticket(
                    booking_id=booking.id,
                    showtime_id=showtime_id,
                    seat_id=item.seat_id,
                    price=item.price,
                    status=TicketStatus.VALID,
                )
                for item in priced
            ]
            self.session.add_all(tickets)

            if promotion is not None:
                await self._redeem_promotion(promotion)

            self._create_booking_history(
                booking.id,
                BookingAction.CREATED,
                f"Booked {len(tickets)} seats, total {total}",
                performed_by=str(user_id),
            )
            await self.session.flush()

            await self.ledger.confirm(showtime_id, seat_ids, user_id, commit=False)
            await self.session.commit()

        except IntegrityError:
            await self.session.rollback()
            await self._release_attempt(showtime_id, seat_ids, user_id)
            logger.warning(f"Ticket insert conflict for showtime {showtime_id}, user {user_id}")
            raise SeatsUnavailableError(seat_ids, showtime_id) from None
        except Exception:
            await self.session.rollback()
            await self._release_attempt(showtime_id, seat_ids, user_id)
            raise

        logger.info(f"Booking {booking.id} created successfully")
        log_business_event(
            "booking_created",
            {
                "booking_id": str(booking.id),
                "showtime_id": str(showtime_id),
                "seat_count": len(tickets),
                "total_amount": total,
            },
            user_id=str(user_id),
        )

        return BookingResult(
            booking=BookingResponse.model_validate(booking),
            tickets=[TicketResponse.model_validate(ticket) for ticket in tickets],
            subtotal=subtotal,
            discount=discount,
            total_amount=total,
        )

    async def cancel_booking(self, booking_id: UUID, user_id: UUID) -> CancelResult:
        """
        Cancel a pending booking owned by the user.

        Holds on the booking's seats are removed and its tickets are marked
        cancelled but kept, so the seats become available again.

        Raises:
            BookingNotFoundError: If booking is not found
            AuthorizationError: If the booking belongs to another user
            InvalidBookingStateError: If the booking is not pending
        """
        logger.info(f"Cancelling booking {booking_id}")

        try:
            booking = await self._get_booking_for_update(booking_id)
            if booking.user_id != user_id:
                raise AuthorizationError("You can only cancel your own bookings")
            if booking.status != BookingStatus.PENDING:
                raise InvalidBookingStateError(
                    str(booking_id),
                    booking.status.value,
                    "Only pending bookings can be cancelled",
                )

            await self._close_booking(
                booking,
                BookingStatus.CANCELLED,
                BookingAction.CANCELLED,
                "Cancelled by user",
                performed_by=str(user_id),
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Booking {booking_id} cancelled successfully")
        log_business_event("booking_cancelled", {"booking_id": str(booking_id)}, user_id=str(user_id))

        return CancelResult(success=True, message="Booking cancelled")

    async def confirm_payment(self, booking_id: UUID, gateway_ref: Optional[str] = None) -> bool:
        """
        Mark a pending booking as paid.

        Calling it again for a paid booking changes nothing and returns True.

        Raises:
            BookingNotFoundError: If booking is not found
            InvalidBookingStateError: If the booking is cancelled or expired
        """
        logger.info(f"Confirming payment for booking {booking_id}")

        try:
            booking = await self._get_booking_for_update(booking_id)

            if booking.status == BookingStatus.PAID:
                await self.session.rollback()
                logger.info(f"Booking {booking_id} already paid")
                return True

            if booking.status != BookingStatus.PENDING:
                raise InvalidBookingStateError(
                    str(booking_id),
                    booking.status.value,
                    f"Cannot confirm payment for booking in {booking.status.value} state",
                )

            now = utcnow()
            booking.status = BookingStatus.PAID
            booking.paid_at = now
            booking.hold_expires_at = None

            details = "Payment confirmed"
            if gateway_ref:
                details += f" (reference: {gateway_ref})"
            self._create_booking_history(booking.id, BookingAction.PAID, details, performed_by="payment")

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Booking {booking_id} paid")
        log_business_event(
            "booking_paid",
            {"booking_id": str(booking_id), "total_amount": booking.total_amount},
            user_id=str(booking.user_id),
        )

        # The paid state is committed; tickets can be issued again on demand
        try:
            await TicketService(self.session).generate_tickets(booking_id)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Ticket finalization failed for paid booking {booking_id}: {e}", exc_info=True)

        return True

    async def expire_abandoned_bookings(self, now: Optional[datetime] = None, limit: int = 100) -> int:
        """
        Expire pending bookings whose holds have run out.

        Each booking is expired in its own transaction; one that was paid or
        cancelled in the meantime is skipped.

        Returns:
            Number of bookings expired
        """
        now = now or utcnow()
        result = await self.session.execute(
            select(Booking.id)
            .where(
                and_(
                    Booking.status == BookingStatus.PENDING,
                    Booking.hold_expires_at.is_not(None),
                    Booking.hold_expires_at <= now,
                )
            )
            .order_by(Booking.hold_expires_at)
            .limit(limit)
        )
        booking_ids = list(result.scalars().all())
        await self.session.rollback()

        expired = 0
        for booking_id in booking_ids:
            try:
                booking = await self._get_booking_for_update(booking_id)
                if booking.status != BookingStatus.PENDING:
                    await self.session.rollback()
                    continue

                await self._close_booking(
                    booking,
                    BookingStatus.EXPIRED,
                    BookingAction.EXPIRED,
                    "Seat holds lapsed before payment",
                    performed_by="sweeper",
                )
                await self.session.commit()
                expired += 1
            except Exception:
                await self.session.rollback()
                raise

        if expired:
            logger.info(f"Expired {expired} abandoned bookings")
        return expired

    async def get_booking(self, booking_id: UUID) -> Booking:
        """
        Get a booking by ID.

        Raises:
            BookingNotFoundError: If booking is not found
        """
        result = await self.session.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        return booking

    async def get_booking_tickets(self, booking_id: UUID) -> List[Ticket]:
        """All tickets of a booking, cancelled ones included."""
        await self.get_booking(booking_id)
        result = await self.session.execute(
            select(Ticket).where(Ticket.booking_id == booking_id).order_by(Ticket.created_at, Ticket.id)
        )
        return list(result.scalars().all())

    async def list_user_bookings(
        self,
        user_id: UUID,
        status: Optional[BookingStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Booking]:
        query = select(Booking).where(Booking.user_id == user_id)
        if status is not None:
            query = query.where(Booking.status == status)

        result = await self.session.execute(
            query.order_by(desc(Booking.booking_time)).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def get_booking_history(self, booking_id: UUID) -> List[BookingHistory]:
        await self.get_booking(booking_id)
        result = await self.session.execute(
            select(BookingHistory)
            .where(BookingHistory.booking_id == booking_id)
            .order_by(BookingHistory.created_at, BookingHistory.id)
        )
        return list(result.scalars().all())

    def _validate_seat_selection(self, seat_ids: List[UUID]) -> None:
        if not seat_ids:
            raise ValidationError("At least one seat is required", field_errors={"seat_ids": ["empty"]})
        if len(set(seat_ids)) != len(seat_ids):
            raise ValidationError(
                "Duplicate seat IDs are not allowed",
                field_errors={"seat_ids": ["duplicates"]},
            )
        if len(seat_ids) > self.settings.max_seats_per_booking:
            raise ValidationError(
                f"Cannot book more than {self.settings.max_seats_per_booking} seats",
                field_errors={"seat_ids": ["too many"]},
            )

    async def _get_user(self, user_id: UUID) -> User:
        result = await self.session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise ResourceNotFoundError("user", str(user_id))
        return user

    async def _get_booking_for_update(self, booking_id: UUID) -> Booking:
        # populate_existing so a status changed by another session is seen
        result = await self.session.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        return booking

    async def _redeem_promotion(self, promotion: Promotion) -> None:
        """Count one use, unless a concurrent booking used up the limit."""
        result = await self.session.execute(
            update(Promotion)
            .where(
                and_(
                    Promotion.id == promotion.id,
                    or_(Promotion.usage_limit.is_(None), Promotion.used_count < Promotion.usage_limit),
                )
            )
            .values(used_count=Promotion.used_count + 1)
        )
        if result.rowcount != 1:
            raise InvalidPromotionError(promotion.code)

    async def _close_booking(
        self,
        booking: Booking,
        status: BookingStatus,
        action: BookingAction,
        details: str,
        performed_by: str,
    ) -> None:
        """Release holds, cancel tickets and set a terminal status, without committing."""
        await self.ledger.release_for_booking(booking, commit=False)
        await self.session.execute(
            update(Ticket)
            .where(and_(Ticket.booking_id == booking.id, Ticket.status == TicketStatus.VALID))
            .values(status=TicketStatus.CANCELLED)
        )
        booking.status = status
        booking.hold_expires_at = None
        self._create_booking_history(booking.id, action, details, performed_by=performed_by)

    async def _release_attempt(self, showtime_id: UUID, seat_ids: List[UUID], user_id: UUID) -> None:
        """Undo this attempt's holds; they lapse on their own if this fails too."""
        try:
            await self.ledger.release(showtime_id, seat_ids, user_id)
        except Exception as e:
            logger.error(f"Failed to release holds after booking failure for user {user_id}: {e}")

    def _create_booking_history(
        self,
        booking_id: UUID,
        action: BookingAction,
        details: str,
        performed_by: Optional[str] = None,
    ) -> None:
        """Create a booking history entry."""
        history = BookingHistory(
            booking_id=booking_id,
            action=action,
            details=details,
            performed_by=performed_by,
        )
        self.session.add(history)
