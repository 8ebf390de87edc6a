"""
Seat inventory models: seat types and the seats of a room.
"""

import uuid
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .venue import Room


class SeatType(Base):
    """Seat category carrying the price multiplier applied to a showtime's base price."""

    __tablename__ = "seat_types"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price_multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    seats: Mapped[List["Seat"]] = relationship("Seat", back_populates="seat_type")

    __table_args__ = (
        CheckConstraint("price_multiplier >= 0", name="ck_seat_types_multiplier_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<SeatType(code='{self.code}', multiplier={self.price_multiplier})>"


class Seat(Base):
    """A physical seat in a room. Only the seat type may change after creation."""

    __tablename__ = "seats"

    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    row: Mapped[str] = mapped_column(String(5), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)

    seat_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("seat_types.id", ondelete="SET NULL"),
        nullable=True
    )

    room: Mapped["Room"] = relationship("Room", back_populates="seats")
    seat_type: Mapped[Optional["SeatType"]] = relationship("SeatType", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("room_id", "row", "number", name="uq_seats_room_location"),
        CheckConstraint("number > 0", name="ck_seats_number_positive"),
    )

    @property
    def label(self) -> str:
        """Human-readable seat label, e.g. ``C7``."""
        return f"{self.row}{self.number}"

    @property
    def price_multiplier(self) -> float:
        """Multiplier from the referenced seat type; seats without a type price at 1.0."""
        if self.seat_type is None:
            return 1.0
        return self.seat_type.price_multiplier

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, room_id={self.room_id}, label='{self.label}')>"
