"""
Ticket model: the permanent record of a seat sold for a showtime.
"""

import enum
import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .seat import Seat
    from .showtime import Showtime


class TicketStatus(enum.Enum):
    """Enumeration for ticket status."""
    VALID = "valid"
    CANCELLED = "cancelled"


class Ticket(Base):
    """
    A sold seat. ``price`` is what was charged at booking time and never
    changes afterwards. Cancelled tickets are kept for audit; only valid
    tickets take part in the per-seat uniqueness.
    """

    __tablename__ = "tickets"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    showtime_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("showtimes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    seat_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("seats.id", ondelete="CASCADE"),
        nullable=False
    )

    price: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus),
        default=TicketStatus.VALID,
        nullable=False
    )
    ticket_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="tickets")
    seat: Mapped["Seat"] = relationship("Seat")
    showtime: Mapped["Showtime"] = relationship("Showtime")

    __table_args__ = (
        Index(
            "uq_tickets_showtime_seat_valid",
            "showtime_id",
            "seat_id",
            unique=True,
            postgresql_where=text("status = 'VALID'"),
            sqlite_where=text("status = 'VALID'"),
        ),
        CheckConstraint("price >= 0", name="ck_tickets_price_non_negative"),
    )

    @property
    def is_valid(self) -> bool:
        return self.status == TicketStatus.VALID

    def __repr__(self) -> str:
        return (
            f"<Ticket(id={self.id}, booking_id={self.booking_id}, "
            f"seat_id={self.seat_id}, price={self.price}, status={self.status.value})>"
        )
