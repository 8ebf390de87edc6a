"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import api_router
from .config import Settings, get_settings
from .database import Database
from .middleware import ErrorHandlerMiddleware, LoggingMiddleware, request_validation_handler
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    A ready ``database`` can be passed in (tests do); otherwise one is
    created from settings on startup and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown events."""
        logger.info("Starting Cinema Booking Platform")
        owns_database = database is None
        app.state.database = database or Database(settings)
        if owns_database:
            await app.state.database.initialize()
        yield
        logger.info("Shutting down Cinema Booking Platform")
        if owns_database:
            await app.state.database.close()

    app = FastAPI(
        title="Cinema Booking Platform API",
        description="""
        ## Cinema Booking Platform

        Seat holds, bookings and payments for movie showtimes.

        ### Concurrency Safety

        * A seat is held by at most one user at a time; the database's unique
          constraint on (showtime, seat) decides races
        * A losing request gets `409 SEAT_NOT_AVAILABLE` listing the seats
        * Holds expire on their own; expired holds never block a seat

        ### Error Handling

        ```json
        {
          "error": {
            "error_code": "ERROR_CODE",
            "message": "Human readable error message",
            "details": {},
            "suggestions": []
          },
          "error_id": "...",
          "timestamp": "..."
        }
        ```
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "catalog", "description": "Users, venues, movies, showtimes and promotions"},
            {"name": "seats", "description": "Seat availability and holds"},
            {"name": "bookings", "description": "Booking creation and lifecycle"},
            {"name": "payments", "description": "Payment capture"},
            {"name": "tickets", "description": "Ticket codes and validation"},
            {"name": "health", "description": "System health endpoints"},
        ],
        lifespan=lifespan,
    )

    # Added last runs first: logging wraps error handling
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)
    if settings.enable_request_logging:
        app.add_middleware(LoggingMiddleware)

    if settings.debug:
        # Credentials cannot be combined with wildcard origins
        cors_origins = ["*"]
        cors_allow_credentials = False
    else:
        cors_origins = settings.cors_origins
        cors_allow_credentials = settings.cors_allow_credentials

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=settings.cors_expose_headers,
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api_router)

    @app.get("/", tags=["health"])
    async def root():
        """Basic information about the API."""
        return {
            "message": "Cinema Booking Platform API",
            "version": "1.0.0",
            "docs_url": "/docs",
            "status": "operational",
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check including database connectivity."""
        db_status = "healthy"
        try:
            async with app.state.database.session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "unhealthy"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "service": "cinema-booking-platform",
            "database": db_status,
        }

    return app


def _configure_logging() -> None:
    settings = get_settings()
    setup_logging(
        log_level="DEBUG" if settings.debug else settings.log_level,
        log_file=settings.log_file or ("logs/cinema.log" if settings.environment == "production" else None),
        enable_json_logging=settings.enable_json_logging or settings.environment == "production",
    )


_configure_logging()
app = create_app()
