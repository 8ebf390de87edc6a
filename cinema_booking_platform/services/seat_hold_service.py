"""
Seat hold ledger: time-bounded, exclusive claims on seats for a showtime.

The unique constraint on ``seat_holds (showtime_id, seat_id)`` is what makes
a seat go to exactly one caller. The availability check in front of the
insert only produces friendlier errors.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import Booking, SeatHold, SeatHoldStatus, Ticket, TicketStatus, User
from ..schemas.seat import SeatHoldResult
from ..utils.clock import utcnow
from ..utils.exceptions import (
    ResourceNotFoundError,
    SeatHoldExpiredError,
    SeatsUnavailableError,
    ValidationError,
)
from .availability_service import AvailabilityService

logger = logging.getLogger(__name__)


class SeatHoldService:
    """Service class for placing, releasing and confirming seat holds."""

    def __init__(self, db: AsyncSession, availability: Optional[AvailabilityService] = None):
        """Initialize the ledger with a database session."""
        self.db = db
        self.availability = availability or AvailabilityService(db)
        self.settings = get_settings()

    async def hold(
        self,
        showtime_id: UUID,
        seat_ids: Sequence[UUID],
        user_id: UUID,
        hold_minutes: Optional[int] = None,
    ) -> SeatHoldResult:
        """
        Hold every requested seat for the user, or none of them.

        Args:
            showtime_id: Showtime UUID
            seat_ids: Seats to hold (no duplicates)
            user_id: User placing the hold
            hold_minutes: Hold duration (default: booking_hold_timeout_minutes)

        Returns:
            Seat hold result with the expiry

        Raises:
            ShowtimeNotFoundError: If the showtime does not exist
            SeatNotFoundError: If a seat is not part of the showtime's room
            ResourceNotFoundError: If the user does not exist
            SeatsUnavailableError: If any seat is booked or held by anyone
            ValidationError: If the request is malformed
        """
        seat_ids = list(seat_ids)
        if hold_minutes is None:
            hold_minutes = self.settings.booking_hold_timeout_minutes
        self._validate_hold_request(seat_ids, hold_minutes)

        try:
            showtime = await self.availability.get_showtime(showtime_id)
            await self.availability.get_seats(showtime, seat_ids)
            await self._get_user(user_id)

            now = utcnow()
            check = await self.availability.check_seats_available(showtime_id, seat_ids, now=now)
        except Exception:
            await self.db.rollback()
            raise

        if not check.all_available:
            await self.db.rollback()
            raise SeatsUnavailableError(check.unavailable_seats, showtime_id)

        hold_until = now + timedelta(minutes=hold_minutes)

        try:
            # Lapsed rows keep the unique slot until someone removes them
            await self.db.execute(
                delete(SeatHold).where(
                    and_(
                        SeatHold.showtime_id == showtime_id,
                        SeatHold.seat_id.in_(seat_ids),
                        or_(
                            and_(SeatHold.status == SeatHoldStatus.HOLDING, SeatHold.hold_until <= now),
                            SeatHold.status == SeatHoldStatus.EXPIRED,
                        ),
                    )
                ).execution_options(synchronize_session=False)
            )

            self.db.add_all([
                SeatHold(
                    showtime_id=showtime_id,
                    seat_id=seat_id,
                    user_id=user_id,
                    hold_until=hold_until,
                    status=SeatHoldStatus.HOLDING,
                )
                for seat_id in seat_ids
            ])
            await self.db.flush()
            await self.db.commit()

        except IntegrityError:
            await self.db.rollback()
            conflicting = await self._conflicting_seats(showtime_id, seat_ids)
            if not conflicting:
                logger.error(f"Seat hold insert for showtime {showtime_id} failed without a seat conflict")
                raise
            logger.info(
                f"Hold race lost for showtime {showtime_id}, user {user_id}: "
                f"{[str(seat_id) for seat_id in conflicting]}"
            )
            raise SeatsUnavailableError(conflicting, showtime_id) from None

        logger.info(f"Held {len(seat_ids)} seats for showtime {showtime_id}, user {user_id} until {hold_until}")

        return SeatHoldResult(
            showtime_id=showtime_id,
            user_id=user_id,
            held_seat_ids=seat_ids,
            hold_until=hold_until,
        )

    async def release(self, showtime_id: UUID, seat_ids: Sequence[UUID], user_id: UUID) -> int:
        """
        Delete the user's holding rows for the given seats. Idempotent.

        Returns:
            Number of holds removed
        """
        try:
            result = await self.db.execute(
                delete(SeatHold).where(
                    and_(
                        SeatHold.showtime_id == showtime_id,
                        SeatHold.seat_id.in_(list(seat_ids)),
                        SeatHold.user_id == user_id,
                        SeatHold.status == SeatHoldStatus.HOLDING,
                    )
                ).execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if result.rowcount:
            logger.info(f"Released {result.rowcount} holds for showtime {showtime_id}, user {user_id}")
        return result.rowcount

    async def confirm(
        self,
        showtime_id: UUID,
        seat_ids: Sequence[UUID],
        user_id: UUID,
        commit: bool = True,
    ) -> int:
        """
        Move the user's active holds on these seats to ``confirmed``.

        With ``commit=False`` the update joins the caller's transaction and
        the caller owns commit and rollback.

        Raises:
            SeatHoldExpiredError: If any seat has no active hold by this user
        """
        seat_ids = list(seat_ids)
        now = utcnow()
        active = self._active_hold_filter(showtime_id, seat_ids, user_id, now)

        try:
            held_result = await self.db.execute(select(SeatHold.seat_id).where(active))
            held = set(held_result.scalars().all())
            missing = [seat_id for seat_id in seat_ids if seat_id not in held]
            if missing:
                raise SeatHoldExpiredError(missing)

            result = await self.db.execute(
                update(SeatHold)
                .where(active)
                .values(status=SeatHoldStatus.CONFIRMED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != len(seat_ids):
                raise SeatHoldExpiredError(seat_ids)

            if commit:
                await self.db.commit()
        except Exception:
            if commit:
                await self.db.rollback()
            raise

        return result.rowcount

    async def release_for_booking(self, booking: Booking, commit: bool = True) -> int:
        """Delete every hold (any status) on the seats of a booking's tickets."""
        ticket_seats = select(Ticket.seat_id).where(Ticket.booking_id == booking.id)

        try:
            result = await self.db.execute(
                delete(SeatHold).where(
                    and_(
                        SeatHold.showtime_id == booking.showtime_id,
                        SeatHold.user_id == booking.user_id,
                        SeatHold.seat_id.in_(ticket_seats),
                    )
                ).execution_options(synchronize_session=False)
            )
            if commit:
                await self.db.commit()
        except Exception:
            if commit:
                await self.db.rollback()
            raise

        return result.rowcount

    async def cleanup_expired_holds(self, now: Optional[datetime] = None) -> int:
        """
        Delete lapsed holding rows. Availability already ignores them, so
        this only reclaims space.

        Returns:
            Number of rows deleted
        """
        now = now or utcnow()
        try:
            result = await self.db.execute(
                delete(SeatHold).where(
                    or_(
                        and_(SeatHold.status == SeatHoldStatus.HOLDING, SeatHold.hold_until <= now),
                        SeatHold.status == SeatHoldStatus.EXPIRED,
                    )
                ).execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if result.rowcount:
            logger.info(f"Cleaned up {result.rowcount} expired seat holds")
        return result.rowcount

    def _validate_hold_request(self, seat_ids: List[UUID], hold_minutes: int) -> None:
        if not seat_ids:
            raise ValidationError("At least one seat is required", field_errors={"seat_ids": ["empty"]})
        if len(set(seat_ids)) != len(seat_ids):
            raise ValidationError(
                "Duplicate seat IDs are not allowed",
                field_errors={"seat_ids": ["duplicates"]},
            )
        if not 1 <= hold_minutes <= self.settings.max_hold_minutes:
            raise ValidationError(
                f"Hold duration must be between 1 and {self.settings.max_hold_minutes} minutes",
                field_errors={"hold_minutes": ["out of range"]},
            )

    async def _get_user(self, user_id: UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise ResourceNotFoundError("user", str(user_id))
        return user

    async def _conflicting_seats(self, showtime_id: UUID, seat_ids: List[UUID]) -> List[UUID]:
        """
        Name the seats that beat us, after a lost insert race.

        Reads the rows that occupy the unique slots directly. An empty list
        means the insert failed for some other reason.
        """
        now = utcnow()
        try:
            held_result = await self.db.execute(
                select(SeatHold.seat_id).where(
                    and_(
                        SeatHold.showtime_id == showtime_id,
                        SeatHold.seat_id.in_(seat_ids),
                        or_(
                            and_(SeatHold.status == SeatHoldStatus.HOLDING, SeatHold.hold_until > now),
                            SeatHold.status == SeatHoldStatus.CONFIRMED,
                        ),
                    )
                )
            )
            ticket_result = await self.db.execute(
                select(Ticket.seat_id).where(
                    and_(
                        Ticket.showtime_id == showtime_id,
                        Ticket.seat_id.in_(seat_ids),
                        Ticket.status == TicketStatus.VALID,
                    )
                )
            )
            taken = set(held_result.scalars().all()) | set(ticket_result.scalars().all())
        finally:
            await self.db.rollback()
        return [seat_id for seat_id in seat_ids if seat_id in taken]

    @staticmethod
    def _active_hold_filter(showtime_id: UUID, seat_ids: List[UUID], user_id: UUID, now: datetime):
        return and_(
            SeatHold.showtime_id == showtime_id,
            SeatHold.seat_id.in_(seat_ids),
            SeatHold.user_id == user_id,
            SeatHold.status == SeatHoldStatus.HOLDING,
            SeatHold.hold_until > now,
        )
