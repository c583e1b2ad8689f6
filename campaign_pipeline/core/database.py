"""
Database configuration and session management.

Provides async engines, session factories and metadata for ORM models.
The URL comes from Settings.database_url; there is no module-level engine.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

# Create declarative base for ORM models
Base = declarative_base()


def to_async_url(database_url: str) -> str:
    """Convert a sync SQLite URL to its aiosqlite form."""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL."""
    return create_async_engine(to_async_url(database_url), echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_database(engine: AsyncEngine) -> None:
    """
    Create tables if they don't exist.

    Every ORM model must be imported here so Base.metadata knows its table.
    """
    from campaign_pipeline.persistence.models import StoredDocument  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized")
