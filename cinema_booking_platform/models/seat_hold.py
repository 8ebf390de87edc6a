"""
SeatHold model: a time-bounded claim on a seat for a showtime.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from ..utils.clock import as_utc

if TYPE_CHECKING:
    from .seat import Seat


class SeatHoldStatus(enum.Enum):
    """Enumeration for seat hold status."""
    HOLDING = "holding"
    EXPIRED = "expired"
    CONFIRMED = "confirmed"


class SeatHold(Base):
    """
    One row per (showtime, seat) claim.

    The unique constraint on (showtime_id, seat_id) is what serializes
    competing checkouts: a second insert for the same seat fails at the
    database. Lapsed ``holding`` rows are logically free and are deleted
    before a new hold is inserted for the same seat.
    """

    __tablename__ = "seat_holds"

    showtime_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("showtimes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    seat_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("seats.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    hold_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[SeatHoldStatus] = mapped_column(
        Enum(SeatHoldStatus),
        default=SeatHoldStatus.HOLDING,
        nullable=False
    )

    seat: Mapped["Seat"] = relationship("Seat")

    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_id", name="uq_seat_holds_showtime_seat"),
        Index("ix_seat_holds_status_hold_until", "status", "hold_until"),
    )

    def is_active(self, now: datetime) -> bool:
        """A hold counts only while it is ``holding`` and not past ``hold_until``."""
        return self.status == SeatHoldStatus.HOLDING and as_utc(self.hold_until) > as_utc(now)

    def __repr__(self) -> str:
        return (
            f"<SeatHold(showtime_id={self.showtime_id}, seat_id={self.seat_id}, "
            f"user_id={self.user_id}, status={self.status.value})>"
        )
