"""
Custom exceptions for the Cinema Booking Platform.
"""

from typing import Any, Dict, Optional, List, Sequence
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the platform."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"

    # Business logic errors
    SEAT_NOT_AVAILABLE = "SEAT_NOT_AVAILABLE"
    SEAT_HOLD_EXPIRED = "SEAT_HOLD_EXPIRED"
    INVALID_BOOKING_STATE = "INVALID_BOOKING_STATE"
    INVALID_PROMOTION = "INVALID_PROMOTION"
    PAYMENT_AMOUNT_MISMATCH = "PAYMENT_AMOUNT_MISMATCH"


class CinemaBookingError(Exception):
    """Base exception class for the booking platform."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        return result


class ValidationError(CinemaBookingError):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if field_errors:
            merged["field_errors"] = field_errors
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details=merged,
        )
        self.field_errors = field_errors or {}


class NotFoundError(CinemaBookingError):
    """Base exception for resource not found errors."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(
            message,
            error_code=ErrorCode.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            suggestions=suggestions,
        )
        self.resource_id = resource_id


class ShowtimeNotFoundError(NotFoundError):
    """Exception raised when a showtime is not found."""

    def __init__(self, showtime_id: str):
        super().__init__(
            f"Showtime {showtime_id} not found",
            resource_type="showtime",
            resource_id=str(showtime_id),
            suggestions=["Check the showtime ID", "Browse upcoming showtimes"],
        )


class BookingNotFoundError(NotFoundError):
    """Exception raised when a booking is not found."""

    def __init__(self, booking_id: str):
        super().__init__(
            f"Booking {booking_id} not found",
            resource_type="booking",
            resource_id=str(booking_id),
            suggestions=["Check the booking ID", "View your booking history"],
        )


class SeatNotFoundError(NotFoundError):
    """Exception raised when one or more seats are not found."""

    def __init__(self, seat_ids: Sequence[Any]):
        ids = [str(seat_id) for seat_id in seat_ids]
        super().__init__(
            f"Seats not found: {', '.join(ids)}",
            resource_type="seat",
            resource_id=",".join(ids),
        )
        self.seat_ids = ids


class TicketNotFoundError(NotFoundError):
    """Exception raised when a ticket is not found."""

    def __init__(self, ticket_id: str):
        super().__init__(
            f"Ticket {ticket_id} not found",
            resource_type="ticket",
            resource_id=str(ticket_id),
        )


class ResourceNotFoundError(NotFoundError):
    """Exception raised for catalog entities without a dedicated error."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type.capitalize()} {resource_id} not found",
            resource_type=resource_type,
            resource_id=str(resource_id),
        )


class AuthorizationError(CinemaBookingError):
    """Exception raised when a user acts on a resource they do not own."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, error_code=ErrorCode.FORBIDDEN)


class BusinessLogicError(CinemaBookingError):
    """Base exception for business logic violations."""
    pass


class SeatsUnavailableError(BusinessLogicError):
    """Exception raised when requested seats are booked or held by someone else."""

    def __init__(self, seat_ids: Sequence[Any], showtime_id: Optional[str] = None):
        ids = [str(seat_id) for seat_id in seat_ids]
        super().__init__(
            f"Some seats are not available: {', '.join(ids)}",
            error_code=ErrorCode.SEAT_NOT_AVAILABLE,
            details={"unavailable_seats": ids, "showtime_id": str(showtime_id) if showtime_id else None},
            suggestions=["Choose different seats", "Refresh seat availability"],
        )
        self.seat_ids = ids


class SeatHoldExpiredError(BusinessLogicError):
    """Exception raised when a hold that should be active is gone or lapsed."""

    def __init__(self, seat_ids: Sequence[Any]):
        ids = [str(seat_id) for seat_id in seat_ids]
        super().__init__(
            f"No active hold for seats: {', '.join(ids)}",
            error_code=ErrorCode.SEAT_HOLD_EXPIRED,
            details={"seat_ids": ids},
            suggestions=["Select the seats again", "Complete checkout faster"],
        )
        self.seat_ids = ids


class InvalidBookingStateError(BusinessLogicError):
    """Exception raised when booking is in invalid state for operation."""

    def __init__(self, booking_id: str, current_state: str, message: Optional[str] = None):
        super().__init__(
            message or f"Booking {booking_id} is in {current_state} state",
            error_code=ErrorCode.INVALID_BOOKING_STATE,
            details={"booking_id": str(booking_id), "current_state": current_state},
        )
        self.current_state = current_state


class InvalidPromotionError(BusinessLogicError):
    """Exception raised for unknown, inactive or out-of-window promotion codes."""

    def __init__(self, code: str):
        super().__init__(
            f"Promotion code {code} is not valid",
            error_code=ErrorCode.INVALID_PROMOTION,
            details={"code": code},
            suggestions=["Check the promotion code", "Book without a promotion"],
        )


class PaymentAmountMismatchError(BusinessLogicError):
    """Exception raised when a captured amount differs from the booking total."""

    def __init__(self, booking_id: str, expected: int, received: int):
        super().__init__(
            f"Payment amount {received} does not match booking total {expected}",
            error_code=ErrorCode.PAYMENT_AMOUNT_MISMATCH,
            details={"booking_id": str(booking_id), "expected": expected, "received": received},
        )


class PromotionNotFoundError(NotFoundError):
    """Exception raised when a promotion code does not exist."""

    def __init__(self, code: str):
        super().__init__(
            f"Promotion {code} not found",
            resource_type="promotion",
            resource_id=code,
        )
