"""Business logic services for the Cinema Booking Platform."""

from .availability_service import AvailabilityService
from .seat_hold_service import SeatHoldService
from .pricing_service import PricingService
from .ticket_service import TicketService
from .booking_service import BookingService
from .payment_service import PaymentService
from .catalog_service import CatalogService

__all__ = [
    "AvailabilityService",
    "SeatHoldService",
    "PricingService",
    "TicketService",
    "BookingService",
    "PaymentService",
    "CatalogService",
]
