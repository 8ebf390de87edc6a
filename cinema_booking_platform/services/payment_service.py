"""
Payment capture for pending bookings.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Booking, BookingStatus, Payment, PaymentMethod, PaymentStatus
from ..utils.clock import utcnow
from ..utils.exceptions import (
    AuthorizationError,
    BookingNotFoundError,
    InvalidBookingStateError,
    PaymentAmountMismatchError,
)
from .booking_service import BookingService

logger = logging.getLogger(__name__)


class PaymentService:
    """Records captured payments and confirms the booking they pay for."""

    def __init__(self, db: AsyncSession, booking_service: Optional[BookingService] = None):
        self.db = db
        self.booking_service = booking_service or BookingService(db)

    async def capture(
        self,
        booking_id: UUID,
        user_id: UUID,
        amount: int,
        method: PaymentMethod = PaymentMethod.CARD,
        gateway_reference: Optional[str] = None,
    ) -> Payment:
        """
        Capture a payment and mark the booking paid.

        A repeated capture with the same gateway reference returns the
        payment already recorded.

        Raises:
            BookingNotFoundError: If booking is not found
            AuthorizationError: If the booking belongs to another user
            InvalidBookingStateError: If the booking is not pending
            PaymentAmountMismatchError: If amount differs from the booking total
        """
        try:
            result = await self.db.execute(
                select(Booking)
                .where(Booking.id == booking_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            booking = result.scalar_one_or_none()
            if not booking:
                raise BookingNotFoundError(str(booking_id))
            if booking.user_id != user_id:
                raise AuthorizationError("You can only pay for your own bookings")

            # Looked up under the booking lock so a concurrent capture is seen
            if gateway_reference:
                existing = await self._find_by_reference(booking_id, gateway_reference)
                if existing is not None:
                    await self.db.commit()
                    logger.info(f"Payment {gateway_reference} for booking {booking_id} already captured")
                    return existing

            if booking.status != BookingStatus.PENDING:
                raise InvalidBookingStateError(
                    str(booking_id),
                    booking.status.value,
                    f"Cannot capture payment for booking in {booking.status.value} state",
                )
            if amount != booking.total_amount:
                raise PaymentAmountMismatchError(str(booking_id), booking.total_amount, amount)

            payment = Payment(
                booking_id=booking_id,
                user_id=user_id,
                amount=amount,
                method=method,
                status=PaymentStatus.COMPLETED,
                gateway_reference=gateway_reference,
                processed_at=utcnow(),
            )
            self.db.add(payment)
        except Exception:
            await self.db.rollback()
            raise

        # Commits the payment together with the status change
        await self.booking_service.confirm_payment(booking_id, gateway_ref=gateway_reference)

        logger.info(f"Captured payment {payment.id} of {amount} for booking {booking_id}")
        return payment

    async def get_payments(self, booking_id: UUID) -> List[Payment]:
        """All payments recorded for a booking, oldest first."""
        await self.booking_service.get_booking(booking_id)
        result = await self.db.execute(
            select(Payment)
            .where(Payment.booking_id == booking_id)
            .order_by(Payment.created_at, Payment.id)
        )
        return list(result.scalars().all())

    async def _find_by_reference(self, booking_id: UUID, gateway_reference: str) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment).where(
                and_(
                    Payment.booking_id == booking_id,
                    Payment.gateway_reference == gateway_reference,
                    Payment.status == PaymentStatus.COMPLETED,
                )
            )
        )
        return result.scalar_one_or_none()
