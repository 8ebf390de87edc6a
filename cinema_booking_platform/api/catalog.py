"""
Catalog administration endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..schemas.catalog import (
    CinemaCreate,
    CinemaResponse,
    MovieCreate,
    MovieResponse,
    PromotionCreate,
    PromotionResponse,
    RoomCreate,
    RoomResponse,
    SeatResponse,
    SeatTypeAssignRequest,
    SeatTypeCreate,
    SeatTypeResponse,
    ShowtimeCreate,
    ShowtimeResponse,
    UserCreate,
    UserResponse,
)
from ..schemas.common import ERROR_RESPONSES
from ..services import CatalogService
from ..utils.dependencies import get_catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"], responses=ERROR_RESPONSES)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_user(data)


@router.post("/cinemas", response_model=CinemaResponse, status_code=status.HTTP_201_CREATED)
async def create_cinema(data: CinemaCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_cinema(data)


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(data: RoomCreate, catalog: CatalogService = Depends(get_catalog_service)):
    """Create a room, optionally with a rectangular grid of seats."""
    room = await catalog.create_room(data)
    seats = await catalog.get_room_seats(room.id)
    return RoomResponse(
        id=room.id,
        cinema_id=room.cinema_id,
        name=room.name,
        seats=[SeatResponse.model_validate(seat) for seat in seats],
    )


@router.post("/seat-types", response_model=SeatTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_seat_type(data: SeatTypeCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_seat_type(data)


@router.put("/seats/{seat_id}/seat-type", response_model=SeatResponse)
async def assign_seat_type(
    seat_id: UUID,
    data: SeatTypeAssignRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Change a seat's type. Prices of later bookings follow the new multiplier."""
    return await catalog.assign_seat_type(seat_id, data.seat_type_id)


@router.post("/movies", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
async def create_movie(data: MovieCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_movie(data)


@router.post("/showtimes", response_model=ShowtimeResponse, status_code=status.HTTP_201_CREATED)
async def create_showtime(data: ShowtimeCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_showtime(data)


@router.post("/promotions", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
async def create_promotion(data: PromotionCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_promotion(data)


@router.get("/promotions/{code}", response_model=PromotionResponse)
async def get_promotion(code: str, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.get_promotion(code)
