"""Cinema Booking Platform: seat holds, bookings and payments for movie showtimes."""

__version__ = "1.0.0"
