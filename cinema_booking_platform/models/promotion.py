"""
Promotion model: discount codes with an optional validity window.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from ..utils.clock import as_utc


class Promotion(Base):
    """Discount code. A missing validity bound leaves that side open."""

    __tablename__ = "promotions"

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    discount_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    discount_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    valid_from: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    valid_to: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "discount_percent IS NULL OR (discount_percent >= 0 AND discount_percent <= 100)",
            name="ck_promotions_percent_range"
        ),
        CheckConstraint(
            "discount_amount IS NULL OR discount_amount >= 0",
            name="ck_promotions_amount_non_negative"
        ),
    )

    def is_within_window(self, now: datetime) -> bool:
        """Check ``valid_from <= now <= valid_to`` with open-ended bounds."""
        now = as_utc(now)
        if self.valid_from is not None and now < as_utc(self.valid_from):
            return False
        if self.valid_to is not None and now > as_utc(self.valid_to):
            return False
        return True

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def __repr__(self) -> str:
        return f"<Promotion(code='{self.code}', active={self.is_active})>"
