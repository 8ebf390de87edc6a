"""
Tests for the seat hold ledger.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from cinema_booking_platform.models import SeatHold, SeatHoldStatus
from cinema_booking_platform.schemas.seat import SeatAvailabilityCheck
from cinema_booking_platform.services import AvailabilityService, SeatHoldService
from cinema_booking_platform.utils.clock import utcnow
from cinema_booking_platform.utils.exceptions import (
    ResourceNotFoundError,
    SeatHoldExpiredError,
    SeatNotFoundError,
    SeatsUnavailableError,
    ShowtimeNotFoundError,
    ValidationError,
)


async def _hold_rows(session, showtime_id):
    result = await session.execute(
        select(SeatHold).where(SeatHold.showtime_id == showtime_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class TestHold:
    @pytest.mark.asyncio
    async def test_hold_all_seats(self, session, seeded):
        # Given
        seat_ids = seeded.standard_seat_ids[:2]
        before = utcnow()

        # When
        result = await SeatHoldService(session).hold(seeded.showtime_id, seat_ids, seeded.user_id, hold_minutes=10)

        # Then
        assert result.held_seat_ids == seat_ids
        assert result.user_id == seeded.user_id
        assert before + timedelta(minutes=10) <= result.hold_until <= utcnow() + timedelta(minutes=10)

        rows = await _hold_rows(session, seeded.showtime_id)
        assert {row.seat_id for row in rows} == set(seat_ids)
        assert all(row.status == SeatHoldStatus.HOLDING for row in rows)

    @pytest.mark.asyncio
    async def test_default_duration_comes_from_settings(self, session, seeded):
        ledger = SeatHoldService(session)
        before = utcnow()

        result = await ledger.hold(seeded.showtime_id, [seeded.vip_seat_ids[0]], seeded.user_id)

        expected = timedelta(minutes=ledger.settings.booking_hold_timeout_minutes)
        assert before + expected <= result.hold_until <= utcnow() + expected

    @pytest.mark.asyncio
    async def test_held_seat_cannot_be_held_by_another_user(self, session, seeded):
        # Given
        ledger = SeatHoldService(session)
        taken = seeded.standard_seat_ids[0]
        await ledger.hold(seeded.showtime_id, [taken], seeded.user_id)

        # When
        with pytest.raises(SeatsUnavailableError) as exc_info:
            await ledger.hold(seeded.showtime_id, [seeded.standard_seat_ids[1], taken], seeded.other_user_id)

        # Then: nothing was held for the second user
        assert exc_info.value.seat_ids == [str(taken)]
        rows = await _hold_rows(session, seeded.showtime_id)
        assert [row.seat_id for row in rows] == [taken]

    @pytest.mark.asyncio
    async def test_lapsed_hold_is_replaced(self, session, seeded):
        # Given
        seat_id = seeded.standard_seat_ids[2]
        session.add(SeatHold(
            showtime_id=seeded.showtime_id,
            seat_id=seat_id,
            user_id=seeded.other_user_id,
            hold_until=utcnow() - timedelta(seconds=5),
            status=SeatHoldStatus.HOLDING,
        ))
        await session.commit()

        # When
        await SeatHoldService(session).hold(seeded.showtime_id, [seat_id], seeded.user_id)

        # Then
        rows = await _hold_rows(session, seeded.showtime_id)
        assert len(rows) == 1
        assert rows[0].user_id == seeded.user_id

    @pytest.mark.asyncio
    async def test_lost_insert_race_reports_unavailable(self, session, seeded):
        """A stale availability check must not let two holds on one seat through."""
        # Given: another user already holds the seat
        seat_id = seeded.vip_seat_ids[0]
        ledger = SeatHoldService(session)
        await ledger.hold(seeded.showtime_id, [seat_id], seeded.other_user_id)

        stale_check = SeatAvailabilityCheck(all_available=True, available_seats=[seat_id], unavailable_seats=[])

        # When: the check in front of the insert saw the seat as free
        with patch.object(
            ledger.availability, "check_seats_available", AsyncMock(return_value=stale_check)
        ):
            with pytest.raises(SeatsUnavailableError) as exc_info:
                await ledger.hold(seeded.showtime_id, [seat_id], seeded.user_id)

        # Then: the unique constraint decided it
        assert exc_info.value.seat_ids == [str(seat_id)]
        rows = await _hold_rows(session, seeded.showtime_id)
        assert [(row.seat_id, row.user_id) for row in rows] == [(seat_id, seeded.other_user_id)]

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_found(self, session, seeded):
        with pytest.raises(ResourceNotFoundError):
            await SeatHoldService(session).hold(seeded.showtime_id, seeded.standard_seat_ids[:2], uuid4())

        assert await _hold_rows(session, seeded.showtime_id) == []

    @pytest.mark.asyncio
    async def test_insert_failure_without_conflict_is_not_reported_as_unavailable(self, session, seeded):
        ledger = SeatHoldService(session)
        stranger = uuid4()

        # Let the user lookup pass so the foreign key rejects the insert
        with patch.object(ledger, "_get_user", AsyncMock(return_value=None)):
            with pytest.raises(IntegrityError):
                await ledger.hold(seeded.showtime_id, [seeded.standard_seat_ids[0]], stranger)

    @pytest.mark.asyncio
    async def test_zero_minute_hold_is_rejected(self, session, seeded):
        with pytest.raises(ValidationError):
            await SeatHoldService(session).hold(
                seeded.showtime_id, [seeded.standard_seat_ids[0]], seeded.user_id, hold_minutes=0
            )

    @pytest.mark.asyncio
    async def test_invalid_requests(self, session, seeded):
        ledger = SeatHoldService(session)
        seat_id = seeded.standard_seat_ids[0]

        with pytest.raises(ValidationError):
            await ledger.hold(seeded.showtime_id, [], seeded.user_id)
        with pytest.raises(ValidationError):
            await ledger.hold(seeded.showtime_id, [seat_id, seat_id], seeded.user_id)
        with pytest.raises(ValidationError):
            await ledger.hold(seeded.showtime_id, [seat_id], seeded.user_id, hold_minutes=61)

    @pytest.mark.asyncio
    async def test_unknown_showtime_or_seat(self, session, seeded):
        ledger = SeatHoldService(session)

        with pytest.raises(ShowtimeNotFoundError):
            await ledger.hold(uuid4(), [seeded.standard_seat_ids[0]], seeded.user_id)
        with pytest.raises(SeatNotFoundError):
            await ledger.hold(seeded.showtime_id, [seeded.other_room_seat_id], seeded.user_id)


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_frees_seats_and_is_idempotent(self, session, seeded):
        # Given
        ledger = SeatHoldService(session)
        seat_ids = seeded.standard_seat_ids[:3]
        await ledger.hold(seeded.showtime_id, seat_ids, seeded.user_id)

        # When
        first = await ledger.release(seeded.showtime_id, seat_ids, seeded.user_id)
        second = await ledger.release(seeded.showtime_id, seat_ids, seeded.user_id)

        # Then
        assert first == 3
        assert second == 0
        check = await AvailabilityService(session).check_seats_available(seeded.showtime_id, seat_ids)
        assert check.all_available is True

    @pytest.mark.asyncio
    async def test_release_ignores_other_users_holds(self, session, seeded):
        ledger = SeatHoldService(session)
        seat_id = seeded.standard_seat_ids[0]
        await ledger.hold(seeded.showtime_id, [seat_id], seeded.user_id)

        released = await ledger.release(seeded.showtime_id, [seat_id], seeded.other_user_id)

        assert released == 0
        assert len(await _hold_rows(session, seeded.showtime_id)) == 1


class TestConfirm:
    @pytest.mark.asyncio
    async def test_confirm_active_holds(self, session, seeded):
        ledger = SeatHoldService(session)
        seat_ids = seeded.vip_seat_ids[:2]
        await ledger.hold(seeded.showtime_id, seat_ids, seeded.user_id)

        confirmed = await ledger.confirm(seeded.showtime_id, seat_ids, seeded.user_id)

        assert confirmed == 2
        rows = await _hold_rows(session, seeded.showtime_id)
        assert {row.status for row in rows} == {SeatHoldStatus.CONFIRMED}

    @pytest.mark.asyncio
    async def test_confirm_without_active_hold(self, session, seeded):
        # Given: one seat held by the user, one never held
        ledger = SeatHoldService(session)
        held, missing = seeded.vip_seat_ids[0], seeded.vip_seat_ids[1]
        await ledger.hold(seeded.showtime_id, [held], seeded.user_id)

        # When
        with pytest.raises(SeatHoldExpiredError) as exc_info:
            await ledger.confirm(seeded.showtime_id, [held, missing], seeded.user_id)

        # Then: nothing changed
        assert exc_info.value.seat_ids == [str(missing)]
        rows = await _hold_rows(session, seeded.showtime_id)
        assert [row.status for row in rows] == [SeatHoldStatus.HOLDING]


class TestCleanupExpiredHolds:
    @pytest.mark.asyncio
    async def test_removes_only_lapsed_and_expired_rows(self, session, seeded):
        # Given
        now = utcnow()
        active_seat, lapsed_seat, expired_seat = seeded.standard_seat_ids[:3]
        session.add_all([
            SeatHold(showtime_id=seeded.showtime_id, seat_id=active_seat, user_id=seeded.user_id,
                     hold_until=now + timedelta(minutes=5), status=SeatHoldStatus.HOLDING),
            SeatHold(showtime_id=seeded.showtime_id, seat_id=lapsed_seat, user_id=seeded.user_id,
                     hold_until=now - timedelta(minutes=5), status=SeatHoldStatus.HOLDING),
            SeatHold(showtime_id=seeded.showtime_id, seat_id=expired_seat, user_id=seeded.user_id,
                     hold_until=now + timedelta(minutes=5), status=SeatHoldStatus.EXPIRED),
        ])
        await session.commit()

        # When
        deleted = await SeatHoldService(session).cleanup_expired_holds(now=now)

        # Then
        assert deleted == 2
        rows = await _hold_rows(session, seeded.showtime_id)
        assert [row.seat_id for row in rows] == [active_seat]
