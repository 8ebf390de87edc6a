"""
Pydantic schemas for catalog administration (users, venues, movies,
seat types, showtimes, promotions).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CinemaCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)


class CinemaResponse(BaseModel):
    id: UUID
    name: str
    address: Optional[str] = None

    model_config = {"from_attributes": True}


class RoomCreate(BaseModel):
    """
    Create a room, optionally laying out a rectangular seat grid.

    ``rows`` are row letters (e.g. ``["A", "B"]``); each row receives seats
    numbered ``1..seats_per_row``.
    """
    cinema_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    rows: List[str] = Field(default_factory=list)
    seats_per_row: int = Field(0, ge=0, le=200)
    seat_type_id: Optional[UUID] = None

    @model_validator(mode="after")
    def validate_grid(self):
        if self.rows and self.seats_per_row == 0:
            raise ValueError("seats_per_row must be positive when rows are given")
        if len(set(self.rows)) != len(self.rows):
            raise ValueError("Duplicate row labels are not allowed")
        return self


class SeatResponse(BaseModel):
    id: UUID
    room_id: UUID
    row: str
    number: int
    seat_type_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class RoomResponse(BaseModel):
    id: UUID
    cinema_id: UUID
    name: str
    seats: List[SeatResponse] = Field(default_factory=list)


class SeatTypeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = Field(None, max_length=255)
    price_multiplier: float = Field(1.0, ge=0)


class SeatTypeResponse(BaseModel):
    id: UUID
    code: str
    description: Optional[str] = None
    price_multiplier: float

    model_config = {"from_attributes": True}


class SeatTypeAssignRequest(BaseModel):
    seat_type_id: Optional[UUID] = Field(None, description="New seat type, or null to clear")


class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    duration_minutes: int = Field(..., gt=0, le=1000)


class MovieResponse(BaseModel):
    id: UUID
    title: str
    duration_minutes: int

    model_config = {"from_attributes": True}


class ShowtimeCreate(BaseModel):
    movie_id: UUID
    room_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    base_price: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_times(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShowtimeResponse(BaseModel):
    id: UUID
    movie_id: UUID
    room_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    base_price: int

    model_config = {"from_attributes": True}


class PromotionCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    discount_percent: Optional[float] = Field(None, ge=0, le=100)
    discount_amount: Optional[int] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def validate_window(self):
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not be before valid_from")
        return self


class PromotionResponse(BaseModel):
    id: UUID
    code: str
    description: Optional[str] = None
    discount_percent: Optional[float] = None
    discount_amount: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    usage_limit: Optional[int] = None
    used_count: int
    is_active: bool

    model_config = {"from_attributes": True}
