"""
Database connection management and session handling.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from .config import Settings, get_settings
from .models.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_write_locking(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    With pysqlite's deferred transactions two writers can both hold a shared
    lock and then fail to upgrade; with BEGIN IMMEDIATE the second writer
    waits on the busy timeout instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_database_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create and configure the database engine with connection pooling."""
    settings = settings or get_settings()
    url = settings.database_url

    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=settings.database_echo,
            connect_args={"timeout": 30},
        )
        _enable_sqlite_write_locking(engine)
        return engine

    return create_async_engine(
        url,
        # Connection pool configuration for concurrent access
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.database_echo,
        connect_args={
            "server_settings": {
                "application_name": "cinema_booking_platform",
            }
        }
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for database sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


class Database:
    """
    Owns the engine and session factory for one application instance.

    Constructed explicitly (FastAPI lifespan, Celery task, test fixture) and
    handed to whoever needs sessions.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self, create_tables: bool = True) -> None:
        """Create the engine and, optionally, the schema."""
        logger.info("Initializing database connection...")
        self.engine = create_database_engine(self.settings)
        self.session_factory = create_session_factory(self.engine)

        if create_tables:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized")

    async def close(self) -> None:
        """Close database connections."""
        if self.engine:
            logger.info("Closing database connections...")
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session with automatic cleanup.

        Services commit their own units of work; anything still open when the
        block exits is rolled back.

        Usage:
            async with database.session() as session:
                result = await session.execute(query)
        """
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
