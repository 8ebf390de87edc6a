"""Background tasks for the Cinema Booking Platform."""
