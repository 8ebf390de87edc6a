"""
Tests for the availability resolver.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from cinema_booking_platform.models import SeatHold, SeatHoldStatus
from cinema_booking_platform.schemas.seat import SeatStatus
from cinema_booking_platform.services import AvailabilityService, BookingService, SeatHoldService
from cinema_booking_platform.utils.clock import utcnow
from cinema_booking_platform.utils.exceptions import SeatNotFoundError, ShowtimeNotFoundError


class TestGetAvailability:
    @pytest.mark.asyncio
    async def test_fresh_showtime_is_all_available(self, session, seeded):
        seats = await AvailabilityService(session).get_availability(seeded.showtime_id)

        assert len(seats) == 10
        assert all(seat.status == SeatStatus.AVAILABLE for seat in seats)
        assert [f"{seat.row}{seat.number}" for seat in seats[:2]] == ["A1", "A2"]

    @pytest.mark.asyncio
    async def test_prices_follow_seat_type(self, session, seeded):
        seats = await AvailabilityService(session).get_availability(seeded.showtime_id)
        prices = {seat.seat_id: seat.price for seat in seats}

        assert prices[seeded.standard_seat_ids[0]] == 90000
        assert prices[seeded.vip_seat_ids[0]] == 117000
        assert {seat.seat_type for seat in seats} == {"STANDARD", "VIP"}

    @pytest.mark.asyncio
    async def test_held_seat_shows_holder_and_expiry(self, session, seeded):
        # Given
        seat_id = seeded.standard_seat_ids[0]
        hold = await SeatHoldService(session).hold(seeded.showtime_id, [seat_id], seeded.user_id)

        # When
        seats = await AvailabilityService(session).get_availability(seeded.showtime_id)

        # Then
        held = next(seat for seat in seats if seat.seat_id == seat_id)
        assert held.status == SeatStatus.HELD
        assert held.held_by == seeded.user_id
        assert held.hold_until == hold.hold_until

    @pytest.mark.asyncio
    async def test_booked_takes_priority_over_hold(self, session, seeded):
        # Given: booking leaves a confirmed hold and a valid ticket on the seat
        seat_id = seeded.vip_seat_ids[2]
        await BookingService(session).create_booking(seeded.user_id, seeded.showtime_id, [seat_id])

        # When
        summary = await AvailabilityService(session).get_availability_summary(seeded.showtime_id)
        seats = await AvailabilityService(session).get_availability(seeded.showtime_id)

        # Then
        assert next(seat for seat in seats if seat.seat_id == seat_id).status == SeatStatus.BOOKED
        assert summary.total_seats == 10
        assert summary.booked_seats == 1
        assert summary.held_seats == 0
        assert summary.available_seats == 9

    @pytest.mark.asyncio
    async def test_lapsed_hold_counts_as_available(self, session, seeded):
        # Given: a holding row the sweeper has not removed yet
        seat_id = seeded.standard_seat_ids[1]
        session.add(SeatHold(
            showtime_id=seeded.showtime_id,
            seat_id=seat_id,
            user_id=seeded.other_user_id,
            hold_until=utcnow() - timedelta(minutes=1),
            status=SeatHoldStatus.HOLDING,
        ))
        await session.commit()

        # When
        seats = await AvailabilityService(session).get_availability(seeded.showtime_id)

        # Then
        lapsed = next(seat for seat in seats if seat.seat_id == seat_id)
        assert lapsed.status == SeatStatus.AVAILABLE
        assert lapsed.held_by is None

    @pytest.mark.asyncio
    async def test_unknown_showtime(self, session):
        with pytest.raises(ShowtimeNotFoundError):
            await AvailabilityService(session).get_availability(uuid4())


class TestCheckSeatsAvailable:
    @pytest.mark.asyncio
    async def test_splits_seats_in_request_order(self, session, seeded):
        # Given
        held_seat = seeded.standard_seat_ids[0]
        free_seats = [seeded.vip_seat_ids[1], seeded.standard_seat_ids[3]]
        await SeatHoldService(session).hold(seeded.showtime_id, [held_seat], seeded.other_user_id)

        # When
        check = await AvailabilityService(session).check_seats_available(
            seeded.showtime_id, [free_seats[0], held_seat, free_seats[1]]
        )

        # Then
        assert check.all_available is False
        assert check.available_seats == free_seats
        assert check.unavailable_seats == [held_seat]

    @pytest.mark.asyncio
    async def test_hold_is_free_again_once_now_passes_expiry(self, session, seeded):
        seat_id = seeded.standard_seat_ids[0]
        hold = await SeatHoldService(session).hold(seeded.showtime_id, [seat_id], seeded.user_id, hold_minutes=5)
        availability = AvailabilityService(session)

        before = await availability.check_seats_available(seeded.showtime_id, [seat_id])
        after = await availability.check_seats_available(
            seeded.showtime_id, [seat_id], now=hold.hold_until + timedelta(seconds=1)
        )

        assert before.all_available is False
        assert after.all_available is True

    @pytest.mark.asyncio
    async def test_empty_request_is_trivially_available(self, session, seeded):
        check = await AvailabilityService(session).check_seats_available(seeded.showtime_id, [])

        assert check.all_available is True
        assert check.available_seats == []


class TestGetSeats:
    @pytest.mark.asyncio
    async def test_returns_seats_in_request_order(self, session, seeded):
        availability = AvailabilityService(session)
        showtime = await availability.get_showtime(seeded.showtime_id)
        requested = [seeded.vip_seat_ids[0], seeded.standard_seat_ids[4]]

        seats = await availability.get_seats(showtime, requested)

        assert [seat.id for seat in seats] == requested
        assert seats[0].seat_type.code == "VIP"

    @pytest.mark.asyncio
    async def test_seat_from_another_room_is_not_found(self, session, seeded):
        availability = AvailabilityService(session)
        showtime = await availability.get_showtime(seeded.showtime_id)

        with pytest.raises(SeatNotFoundError):
            await availability.get_seats(showtime, [seeded.standard_seat_ids[0], seeded.other_room_seat_id])
