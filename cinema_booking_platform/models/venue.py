"""
Cinema and room models.
"""

import uuid
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .seat import Seat
    from .showtime import Showtime


class Cinema(Base):
    """A venue holding one or more screening rooms."""

    __tablename__ = "cinemas"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    rooms: Mapped[List["Room"]] = relationship(
        "Room",
        back_populates="cinema",
        cascade="all, delete-orphan"
    )


class Room(Base):
    """A screening room with a fixed seat inventory."""

    __tablename__ = "rooms"

    cinema_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cinemas.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    cinema: Mapped["Cinema"] = relationship("Cinema", back_populates="rooms")
    seats: Mapped[List["Seat"]] = relationship(
        "Seat",
        back_populates="room",
        cascade="all, delete-orphan"
    )
    showtimes: Mapped[List["Showtime"]] = relationship("Showtime", back_populates="room")

    __table_args__ = (
        UniqueConstraint("cinema_id", "name", name="uq_rooms_cinema_name"),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, name='{self.name}')>"
