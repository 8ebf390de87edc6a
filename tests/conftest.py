"""
Shared fixtures: a throwaway SQLite database per test and a small seeded
cinema (one room, two rows of five seats, one showtime).
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List
from uuid import UUID

import pytest
import pytest_asyncio

from cinema_booking_platform.config import Settings
from cinema_booking_platform.database import Database
from cinema_booking_platform.models import (
    Cinema,
    Movie,
    Promotion,
    Room,
    Seat,
    SeatType,
    Showtime,
    User,
)
from cinema_booking_platform.utils.clock import utcnow

BASE_PRICE = 90000
VIP_MULTIPLIER = 1.3


@dataclass
class SeededCinema:
    user_id: UUID
    other_user_id: UUID
    room_id: UUID
    showtime_id: UUID
    standard_seat_ids: List[UUID] = field(default_factory=list)
    vip_seat_ids: List[UUID] = field(default_factory=list)
    other_room_seat_id: UUID = None
    promotion_code: str = "SAVE10"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cinema_test.db'}",
        enable_request_logging=False,
    )


@pytest_asyncio.fixture
async def database(settings):
    database = Database(settings)
    await database.initialize()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def session(database, seeded):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(database) -> SeededCinema:
    """Row A is standard (1.0), row B is VIP (1.3); base price 90000."""
    async with database.session() as session:
        standard = SeatType(code="STANDARD", price_multiplier=1.0)
        vip = SeatType(code="VIP", price_multiplier=VIP_MULTIPLIER)
        user = User(email="alice@example.com", full_name="Alice")
        other_user = User(email="bob@example.com", full_name="Bob")

        cinema = Cinema(name="Galaxy", address="1 Main St")
        room = Room(cinema=cinema, name="Room 1")
        other_room = Room(cinema=cinema, name="Room 2")
        standard_seats = [Seat(room=room, row="A", number=n, seat_type=standard) for n in range(1, 6)]
        vip_seats = [Seat(room=room, row="B", number=n, seat_type=vip) for n in range(1, 6)]
        stray_seat = Seat(room=other_room, row="A", number=1, seat_type=standard)

        movie = Movie(title="Arrival", duration_minutes=116)
        start = utcnow() + timedelta(days=1)
        showtime = Showtime(
            movie=movie,
            room=room,
            start_time=start,
            end_time=start + timedelta(minutes=116),
            base_price=BASE_PRICE,
        )
        promotion = Promotion(code="SAVE10", description="10% off", discount_percent=10.0, is_active=True)

        session.add_all([
            standard, vip, user, other_user, cinema, room, other_room,
            *standard_seats, *vip_seats, stray_seat, movie, showtime, promotion,
        ])
        await session.commit()

        return SeededCinema(
            user_id=user.id,
            other_user_id=other_user.id,
            room_id=room.id,
            showtime_id=showtime.id,
            standard_seat_ids=[seat.id for seat in standard_seats],
            vip_seat_ids=[seat.id for seat in vip_seats],
            other_room_seat_id=stray_seat.id,
        )
