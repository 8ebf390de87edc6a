"""
Tests for the background sweeps and their Celery wiring.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from cinema_booking_platform.models import BookingStatus, SeatHold, SeatHoldStatus
from cinema_booking_platform.services import BookingService
from cinema_booking_platform.tasks import booking_tasks
from cinema_booking_platform.tasks.celery_app import celery_app
from cinema_booking_platform.utils.clock import utcnow


class TestSweeps:
    @pytest.mark.asyncio
    async def test_sweep_expired_holds(self, database, seeded):
        # Given
        now = utcnow()
        async with database.session() as session:
            session.add_all([
                SeatHold(showtime_id=seeded.showtime_id, seat_id=seeded.standard_seat_ids[0],
                         user_id=seeded.user_id, hold_until=now - timedelta(minutes=1),
                         status=SeatHoldStatus.HOLDING),
                SeatHold(showtime_id=seeded.showtime_id, seat_id=seeded.standard_seat_ids[1],
                         user_id=seeded.user_id, hold_until=now + timedelta(minutes=10),
                         status=SeatHoldStatus.HOLDING),
            ])
            await session.commit()

        # When
        result = await booking_tasks.sweep_expired_holds(database, now=now)

        # Then
        assert result == {"deleted_count": 1}

    @pytest.mark.asyncio
    async def test_sweep_abandoned_bookings(self, database, seeded):
        # Given
        async with database.session() as session:
            service = BookingService(session)
            created = await service.create_booking(seeded.user_id, seeded.showtime_id, [seeded.vip_seat_ids[0]])
            timeout = service.settings.booking_hold_timeout_minutes

        # When
        result = await booking_tasks.sweep_abandoned_bookings(
            database, now=utcnow() + timedelta(minutes=timeout + 1)
        )

        # Then
        assert result == {"expired_count": 1}
        async with database.session() as session:
            booking = await BookingService(session).get_booking(created.booking.id)
            assert booking.status == BookingStatus.EXPIRED


@pytest.mark.unit
class TestCeleryTasks:
    def test_beat_schedule_runs_both_sweeps(self):
        scheduled = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}

        assert scheduled == {"cleanup_expired_holds_task", "expire_abandoned_bookings_task"}

    def test_cleanup_task_runs_hold_sweep(self):
        with patch.object(booking_tasks, "_run_with_database", return_value={"deleted_count": 3}) as run:
            result = booking_tasks.cleanup_expired_holds_task()

        assert result == {"deleted_count": 3}
        run.assert_called_once_with(booking_tasks.sweep_expired_holds)

    def test_expiry_task_runs_booking_sweep(self):
        with patch.object(booking_tasks, "_run_with_database", return_value={"expired_count": 0}) as run:
            result = booking_tasks.expire_abandoned_bookings_task()

        assert result == {"expired_count": 0}
        run.assert_called_once_with(booking_tasks.sweep_abandoned_bookings)

    def test_task_errors_propagate(self):
        with patch.object(booking_tasks, "_run_with_database", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                booking_tasks.cleanup_expired_holds_task()
