"""
Common schemas for API responses and error handling.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: Optional[str] = None
    timestamp: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "SEAT_NOT_AVAILABLE",
                        "message": "Some seats are not available: 9d7c...",
                        "details": {
                            "unavailable_seats": ["9d7c2f8e-4a4b-4f57-8f55-0c1b1f6d2a10"],
                            "showtime_id": "123e4567-e89b-12d3-a456-426614174000"
                        },
                        "suggestions": [
                            "Choose different seats",
                            "Refresh seat availability"
                        ]
                    },
                    "error_id": "3f1d2c4e-0a9b-4a43-9d3c-7a5e9e2b8c11",
                    "timestamp": "2026-01-01T12:00:00+00:00"
                }
            ]
        }
    }


class MessageResponse(BaseModel):
    """Schema for simple success/failure responses."""

    success: bool
    message: str


ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Seat or booking conflict"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}
