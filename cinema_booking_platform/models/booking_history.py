"""
BookingHistory model for tracking booking audit trail.
"""

import enum
import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .booking import Booking


class BookingAction(enum.Enum):
    """Enumeration for booking actions."""
    CREATED = "created"
    PAID = "paid"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class BookingHistory(Base):
    """BookingHistory model for tracking booking audit trail."""

    __tablename__ = "booking_history"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    action: Mapped[BookingAction] = mapped_column(
        Enum(BookingAction),
        nullable=False,
        index=True
    )

    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Who triggered the transition (user id, "payment", "sweeper")
    performed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="booking_history")

    def __repr__(self) -> str:
        return (
            f"<BookingHistory(id={self.id}, booking_id={self.booking_id}, "
            f"action={self.action.value}, created_at={self.created_at})>"
        )
