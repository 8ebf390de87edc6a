"""
Showtime model: a scheduled screening of a movie in a room.
"""

import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .movie import Movie
    from .venue import Room


class Showtime(Base):
    """A screening with an integer base price in currency units."""

    __tablename__ = "showtimes"

    movie_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    base_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    movie: Mapped["Movie"] = relationship("Movie", back_populates="showtimes")
    room: Mapped["Room"] = relationship("Room", back_populates="showtimes")

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_showtimes_base_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Showtime(id={self.id}, room_id={self.room_id}, start_time={self.start_time})>"
