"""Database connection and session management."""

import logging
from typing import Optional

from motorai.config import settings
from motorai.models.base import Base
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

engine = None
async_session_maker: Optional[async_sessionmaker] = None


async def init_db(database_url: Optional[str] = None, create_tables: bool = True):
    """Initialize database engine and create tables.

    Raises:
        RuntimeError: If no database URL is configured
    """
    global engine, async_session_maker

    url = database_url or settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is not configured - cannot start without a data store")

    engine = create_async_engine(
        url,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
    )

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("Database engine initialized")
    return async_session_maker


async def close_db():
    """Close database engine."""
    global engine, async_session_maker
    if engine:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    async_session_maker = None


def get_session_maker() -> async_sessionmaker:
    """Return the session factory.

    Raises:
        RuntimeError: If init_db() has not been called
    """
    if async_session_maker is None:
        raise RuntimeError("Database not initialized - call init_db() first")
    return async_session_maker


async def get_db() -> AsyncSession:
    """Get database session."""
    async with get_session_maker()() as session:
        yield session
