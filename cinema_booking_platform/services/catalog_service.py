"""
Catalog administration: users, cinemas, rooms and their seats, seat types,
movies, showtimes and promotions.
"""

import logging
from datetime import timedelta
from typing import List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Base, Cinema, Movie, Promotion, Room, Seat, SeatType, Showtime, User
from ..schemas.catalog import (
    CinemaCreate,
    MovieCreate,
    PromotionCreate,
    RoomCreate,
    SeatTypeCreate,
    ShowtimeCreate,
    UserCreate,
)
from ..utils.exceptions import PromotionNotFoundError, ResourceNotFoundError, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class CatalogService:
    """Service class for the static data the booking core reads."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, data: UserCreate) -> User:
        user = User(email=data.email.lower(), full_name=data.full_name)
        return await self._save(user, f"User with email {data.email} already exists")

    async def create_cinema(self, data: CinemaCreate) -> Cinema:
        return await self._save(Cinema(name=data.name, address=data.address))

    async def create_room(self, data: RoomCreate) -> Room:
        """
        Create a room and its seat grid in one transaction.

        Raises:
            ResourceNotFoundError: If the cinema or seat type does not exist
            ValidationError: If the room name is taken in that cinema
        """
        await self._get(Cinema, data.cinema_id)
        if data.seat_type_id is not None:
            await self._get(SeatType, data.seat_type_id)

        room = Room(cinema_id=data.cinema_id, name=data.name)
        self.db.add(room)
        for row in data.rows:
            for number in range(1, data.seats_per_row + 1):
                self.db.add(Seat(room=room, row=row, number=number, seat_type_id=data.seat_type_id))

        room = await self._save(room, f"Room {data.name} already exists in this cinema")
        logger.info(f"Created room {room.id} with {len(data.rows) * data.seats_per_row} seats")
        return room

    async def get_room_seats(self, room_id: UUID) -> List[Seat]:
        await self._get(Room, room_id)
        result = await self.db.execute(
            select(Seat).where(Seat.room_id == room_id).order_by(Seat.row, Seat.number)
        )
        return list(result.scalars().all())

    async def create_seat_type(self, data: SeatTypeCreate) -> SeatType:
        seat_type = SeatType(
            code=data.code,
            description=data.description,
            price_multiplier=data.price_multiplier,
        )
        return await self._save(seat_type, f"Seat type {data.code} already exists")

    async def assign_seat_type(self, seat_id: UUID, seat_type_id: Optional[UUID]) -> Seat:
        """Point a seat at another seat type; later pricing picks it up."""
        seat = await self._get(Seat, seat_id)
        if seat_type_id is not None:
            await self._get(SeatType, seat_type_id)
        seat.seat_type_id = seat_type_id
        return await self._save(seat)

    async def create_movie(self, data: MovieCreate) -> Movie:
        return await self._save(Movie(title=data.title, duration_minutes=data.duration_minutes))

    async def create_showtime(self, data: ShowtimeCreate) -> Showtime:
        """Schedule a movie in a room. Without an end time, the movie's duration is used."""
        movie = await self._get(Movie, data.movie_id)
        await self._get(Room, data.room_id)

        end_time = data.end_time
        if end_time is None and movie.duration_minutes:
            end_time = data.start_time + timedelta(minutes=movie.duration_minutes)
        showtime = Showtime(
            movie_id=data.movie_id,
            room_id=data.room_id,
            start_time=data.start_time,
            end_time=end_time,
            base_price=data.base_price,
        )
        return await self._save(showtime)

    async def create_promotion(self, data: PromotionCreate) -> Promotion:
        promotion = Promotion(**data.model_dump())
        return await self._save(promotion, f"Promotion {data.code} already exists")

    async def get_promotion(self, code: str) -> Promotion:
        result = await self.db.execute(select(Promotion).where(Promotion.code == code))
        promotion = result.scalar_one_or_none()
        if not promotion:
            raise PromotionNotFoundError(code)
        return promotion

    async def _get(self, model: Type[ModelT], entity_id: UUID) -> ModelT:
        result = await self.db.execute(select(model).where(model.id == entity_id))
        entity = result.scalar_one_or_none()
        if entity is None:
            await self.db.rollback()
            raise ResourceNotFoundError(model.__tablename__[:-1].replace("_", " "), str(entity_id))
        return entity

    async def _save(self, entity: ModelT, conflict_message: Optional[str] = None) -> ModelT:
        self.db.add(entity)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(conflict_message or f"Failed to save {type(entity).__name__}: {e.orig}")
        return entity
