"""
Availability resolver: derives the live status of every seat of a showtime
from valid tickets and unexpired holds.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Seat, SeatHold, SeatHoldStatus, Showtime, Ticket, TicketStatus
from ..schemas.seat import (
    SeatAvailability,
    SeatAvailabilityCheck,
    SeatAvailabilitySummary,
    SeatStatus,
)
from ..utils.clock import as_utc, utcnow
from ..utils.exceptions import SeatNotFoundError, ShowtimeNotFoundError
from .pricing_service import seat_price

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Read-only view of seat availability. Never writes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_showtime(self, showtime_id: UUID) -> Showtime:
        result = await self.db.execute(select(Showtime).where(Showtime.id == showtime_id))
        showtime = result.scalar_one_or_none()
        if not showtime:
            raise ShowtimeNotFoundError(str(showtime_id))
        return showtime

    async def get_seats(self, showtime: Showtime, seat_ids: Sequence[UUID]) -> List[Seat]:
        """
        Load the requested seats of the showtime's room, in request order,
        with their seat types.

        Raises:
            SeatNotFoundError: If any id is not a seat of that room
        """
        result = await self.db.execute(
            select(Seat)
            .options(selectinload(Seat.seat_type))
            .where(and_(Seat.room_id == showtime.room_id, Seat.id.in_(list(seat_ids))))
        )
        seats_by_id = {seat.id: seat for seat in result.scalars().all()}

        missing = [seat_id for seat_id in seat_ids if seat_id not in seats_by_id]
        if missing:
            raise SeatNotFoundError(missing)
        return [seats_by_id[seat_id] for seat_id in seat_ids]

    async def get_availability(self, showtime_id: UUID) -> List[SeatAvailability]:
        """
        Compute the status of every seat in the showtime's room.

        A seat with a valid ticket is booked, otherwise a seat with an
        unexpired holding row is held, otherwise it is available.

        Raises:
            ShowtimeNotFoundError: If the showtime does not exist
        """
        showtime = await self.get_showtime(showtime_id)

        seats_result = await self.db.execute(
            select(Seat)
            .options(selectinload(Seat.seat_type))
            .where(Seat.room_id == showtime.room_id)
            .order_by(Seat.row, Seat.number)
        )
        seats = seats_result.scalars().all()

        booked = await self._booked_seat_ids(showtime_id)
        held = await self._active_holds(showtime_id)

        availability = []
        for seat in seats:
            entry = SeatAvailability(
                seat_id=seat.id,
                row=seat.row,
                number=seat.number,
                seat_type=seat.seat_type.code if seat.seat_type else None,
                price=seat_price(showtime.base_price, seat.price_multiplier),
                status=SeatStatus.AVAILABLE,
            )
            if seat.id in booked:
                entry.status = SeatStatus.BOOKED
            elif seat.id in held:
                entry.status = SeatStatus.HELD
                entry.held_by, entry.hold_until = held[seat.id]
            availability.append(entry)

        return availability

    async def check_seats_available(
        self,
        showtime_id: UUID,
        seat_ids: Sequence[UUID],
        now: Optional[datetime] = None,
    ) -> SeatAvailabilityCheck:
        """
        Split the requested seats into available and unavailable, keeping
        request order. Advisory only: the insert into ``seat_holds`` decides.
        """
        if not seat_ids:
            return SeatAvailabilityCheck(all_available=True, available_seats=[], unavailable_seats=[])

        booked = await self._booked_seat_ids(showtime_id, seat_ids)
        held = await self._active_holds(showtime_id, seat_ids, now=now)

        available: List[UUID] = []
        unavailable: List[UUID] = []
        for seat_id in seat_ids:
            if seat_id in booked or seat_id in held:
                unavailable.append(seat_id)
            else:
                available.append(seat_id)

        return SeatAvailabilityCheck(
            all_available=not unavailable,
            available_seats=available,
            unavailable_seats=unavailable,
        )

    async def get_availability_summary(self, showtime_id: UUID) -> SeatAvailabilitySummary:
        seats = await self.get_availability(showtime_id)
        counts = {status: 0 for status in SeatStatus}
        for seat in seats:
            counts[seat.status] += 1

        return SeatAvailabilitySummary(
            showtime_id=showtime_id,
            total_seats=len(seats),
            available_seats=counts[SeatStatus.AVAILABLE],
            held_seats=counts[SeatStatus.HELD],
            booked_seats=counts[SeatStatus.BOOKED],
        )

    async def _booked_seat_ids(
        self,
        showtime_id: UUID,
        seat_ids: Optional[Sequence[UUID]] = None,
    ) -> Set[UUID]:
        conditions = [
            Ticket.showtime_id == showtime_id,
            Ticket.status == TicketStatus.VALID,
        ]
        if seat_ids is not None:
            conditions.append(Ticket.seat_id.in_(list(seat_ids)))

        result = await self.db.execute(select(Ticket.seat_id).where(and_(*conditions)))
        return set(result.scalars().all())

    async def _active_holds(
        self,
        showtime_id: UUID,
        seat_ids: Optional[Sequence[UUID]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[UUID, Tuple[UUID, datetime]]:
        # Lapsed rows are excluded here even if the sweeper has not run yet
        conditions = [
            SeatHold.showtime_id == showtime_id,
            SeatHold.status == SeatHoldStatus.HOLDING,
            SeatHold.hold_until > (now or utcnow()),
        ]
        if seat_ids is not None:
            conditions.append(SeatHold.seat_id.in_(list(seat_ids)))

        result = await self.db.execute(
            select(SeatHold.seat_id, SeatHold.user_id, SeatHold.hold_until).where(and_(*conditions))
        )
        return {
            seat_id: (user_id, as_utc(hold_until))
            for seat_id, user_id, hold_until in result.all()
        }
