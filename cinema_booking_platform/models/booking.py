"""
Booking model for managing ticket reservations.
"""

import enum
import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from ..utils.clock import as_utc, utcnow

if TYPE_CHECKING:
    from .user import User
    from .showtime import Showtime
    from .ticket import Ticket
    from .promotion import Promotion
    from .booking_history import BookingHistory


class BookingStatus(enum.Enum):
    """Enumeration for booking status."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class Booking(Base):
    """Booking model: one user's purchase of seats for one showtime."""

    __tablename__ = "bookings"

    # Foreign key relationships
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    showtime_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("showtimes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    promotion_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("promotions.id", ondelete="SET NULL"),
        nullable=True
    )

    # Amounts in integer currency units
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Booking status and timing
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True
    )

    booking_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )

    hold_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True
    )

    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="bookings")
    showtime: Mapped["Showtime"] = relationship("Showtime")
    promotion: Mapped[Optional["Promotion"]] = relationship("Promotion")

    tickets: Mapped[List["Ticket"]] = relationship(
        "Ticket",
        back_populates="booking",
        cascade="all, delete-orphan"
    )

    booking_history: Mapped[List["BookingHistory"]] = relationship(
        "BookingHistory",
        back_populates="booking",
        cascade="all, delete-orphan"
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_amount_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_bookings_discount_non_negative"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.PENDING

    def holds_lapsed(self, now: Optional[datetime] = None) -> bool:
        """True once the provisional holds behind a pending booking have run out."""
        if self.hold_expires_at is None:
            return False
        return as_utc(now or utcnow()) > as_utc(self.hold_expires_at)

    def __repr__(self) -> str:
        """String representation of the booking."""
        return (
            f"<Booking(id={self.id}, user_id={self.user_id}, "
            f"showtime_id={self.showtime_id}, total={self.total_amount}, status={self.status.value})>"
        )
