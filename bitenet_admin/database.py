"""
Database Connection Module
Handles the SQLAlchemy async engine and session factory.

The engine is owned by a ``Database`` instance created in the application
lifespan (or by the Celery task) and disposed explicitly on shutdown.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


class Database:
    """Async engine plus session factory with an explicit lifetime."""

    def __init__(self, url: str, echo: bool = False, **engine_options):
        if not url.startswith("sqlite"):
            engine_options.setdefault("pool_size", 5)
            engine_options.setdefault("max_overflow", 10)
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Objects remain accessible after commit
        )

    def session(self) -> AsyncSession:
        return self.session_maker()

    async def create_all(self) -> None:
        """
        Create all tables in database.
        Called once at application startup.
        """
        # Register every model on Base.metadata
        from bitenet_admin import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables ready")

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
