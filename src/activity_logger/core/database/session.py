"""Async engine and session factory construction."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from activity_logger.config import Settings
from activity_logger.core.database.base import Base


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine described by the settings.

    Pool sizing only applies to server databases; SQLite manages its
    own pool.

    Args:
        settings: Application settings

    Returns:
        Configured async engine
    """
    url = settings.async_database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo)

    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,  # Verify connections before use
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on the declarative base."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
