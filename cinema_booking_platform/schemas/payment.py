"""
Payment schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.payment import PaymentMethod, PaymentStatus


class PaymentCaptureRequest(BaseModel):
    """Request schema for capturing a payment."""
    booking_id: UUID
    user_id: UUID
    amount: int = Field(..., ge=0, description="Amount in integer currency units")
    method: PaymentMethod = PaymentMethod.CARD
    gateway_reference: Optional[str] = Field(None, max_length=255)


class PaymentResponse(BaseModel):
    id: UUID
    booking_id: UUID
    user_id: UUID
    amount: int
    method: PaymentMethod
    status: PaymentStatus
    gateway_reference: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
