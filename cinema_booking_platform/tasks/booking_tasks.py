"""
Celery tasks for hold cleanup and booking expiration.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from .celery_app import celery_app
from ..database import Database
from ..services.booking_service import BookingService
from ..services.seat_hold_service import SeatHoldService

logger = logging.getLogger(__name__)


async def sweep_expired_holds(database: Database, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Delete lapsed seat holds."""
    async with database.session() as session:
        deleted = await SeatHoldService(session).cleanup_expired_holds(now=now)
    return {"deleted_count": deleted}


async def sweep_abandoned_bookings(database: Database, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Expire pending bookings whose holds lapsed without payment."""
    async with database.session() as session:
        expired = await BookingService(session).expire_abandoned_bookings(now=now)
    return {"expired_count": expired}


def _run_with_database(sweep: Callable[[Database], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
    """Run a sweep on a fresh event loop with a short-lived Database."""

    async def _run():
        database = Database()
        await database.initialize(create_tables=False)
        try:
            return await sweep(database)
        finally:
            await database.close()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_run())
    finally:
        loop.close()


@celery_app.task(name="cleanup_expired_holds_task")
def cleanup_expired_holds_task():
    """
    Periodic task removing seat holds whose time ran out.

    Availability already treats lapsed holds as free; this only keeps the
    table small.
    """
    logger.info("Starting seat hold cleanup task")
    try:
        result = _run_with_database(sweep_expired_holds)
    except Exception as e:
        logger.error(f"Error in seat hold cleanup task: {e}")
        raise
    logger.info(f"Seat hold cleanup finished: {result}")
    return result


@celery_app.task(name="expire_abandoned_bookings_task")
def expire_abandoned_bookings_task():
    """Periodic task expiring pending bookings that were never paid."""
    logger.info("Starting booking expiration task")
    try:
        result = _run_with_database(sweep_abandoned_bookings)
    except Exception as e:
        logger.error(f"Error in booking expiration task: {e}")
        raise
    logger.info(f"Booking expiration finished: {result}")
    return result
