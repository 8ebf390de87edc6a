"""
Seat pricing and promotion discounts.

All amounts are integer currency units. Rounding is half away from zero.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import Promotion, Seat, Showtime
from ..utils.clock import utcnow
from ..utils.exceptions import InvalidPromotionError

logger = logging.getLogger(__name__)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def seat_price(base_price: int, multiplier: float) -> int:
    """Price of one seat: ``round(base_price * multiplier)``, never negative."""
    price = _round_half_up(Decimal(base_price) * Decimal(str(multiplier)))
    return max(0, price)


def compute_discount(promotion: Optional[Promotion], subtotal: int) -> int:
    """
    Discount for a subtotal: the larger of the percent and flat parts,
    capped at the subtotal.
    """
    if promotion is None or subtotal <= 0:
        return 0

    by_percent = Decimal(subtotal) * Decimal(str(promotion.discount_percent or 0)) / Decimal(100)
    by_amount = Decimal(promotion.discount_amount or 0)
    discount = min(Decimal(subtotal), max(by_percent, by_amount))
    return _round_half_up(discount)


def compute_total(subtotal: int, discount: int) -> int:
    return max(0, subtotal - discount)


@dataclass(frozen=True)
class PricedSeat:
    seat_id: UUID
    price: int


class PricingService:
    """Prices seats for a showtime and resolves promotion codes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    def price_seats(self, showtime: Showtime, seats: Sequence[Seat]) -> Tuple[List[PricedSeat], int]:
        """Price each seat against the showtime's base price. Seat types must be loaded."""
        priced = [
            PricedSeat(seat_id=seat.id, price=seat_price(showtime.base_price, seat.price_multiplier))
            for seat in seats
        ]
        return priced, sum(item.price for item in priced)

    async def find_applicable_promotion(
        self,
        code: Optional[str],
        now: Optional[datetime] = None,
    ) -> Optional[Promotion]:
        """
        Look up an active, in-window, not exhausted promotion by code.

        Returns None for anything else, unless ``strict_promotion_codes`` is
        enabled, in which case a non-applicable code raises
        InvalidPromotionError.
        """
        if not code:
            return None

        result = await self.db.execute(select(Promotion).where(Promotion.code == code))
        promotion = result.scalar_one_or_none()

        now = now or utcnow()
        applicable = (
            promotion is not None
            and promotion.is_active
            and promotion.is_within_window(now)
            and not promotion.is_exhausted
        )
        if applicable:
            return promotion

        if self.settings.strict_promotion_codes:
            raise InvalidPromotionError(code)

        logger.info(f"Ignoring promotion code {code!r}: not applicable")
        return None
