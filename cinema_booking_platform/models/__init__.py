"""
Database models for the Cinema Booking Platform.
"""

from .base import Base
from .user import User
from .venue import Cinema, Room
from .movie import Movie
from .seat import Seat, SeatType
from .showtime import Showtime
from .seat_hold import SeatHold, SeatHoldStatus
from .promotion import Promotion
from .booking import Booking, BookingStatus
from .ticket import Ticket, TicketStatus
from .payment import Payment, PaymentMethod, PaymentStatus
from .booking_history import BookingHistory, BookingAction

__all__ = [
    "Base",
    "User",
    "Cinema",
    "Room",
    "Movie",
    "Seat",
    "SeatType",
    "Showtime",
    "SeatHold",
    "SeatHoldStatus",
    "Promotion",
    "Booking",
    "BookingStatus",
    "Ticket",
    "TicketStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "BookingHistory",
    "BookingAction",
]
