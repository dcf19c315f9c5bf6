"""
PostDesk Backend — Database Engine & Session Factory
======================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
Why:   Centralizes all connection logic in one place. The SQL repositories
       receive the session factory explicitly; nothing looks it up globally.
How:   build_engine() creates an async engine from settings; the app factory
       stores it on app.state and disposes it on shutdown.
Who:   Called by main.create_app() and the health check.
When:  Engine is created once per app instance; sessions per repository call.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite (tests, local experiments) gets a StaticPool instead, so every
    session sees the same in-memory database.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from postdesk.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with a single metadata
    object (used by init_models() to create missing tables).
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Why branch on SQLite: aiosqlite does not accept queue-pool sizing
    arguments, and an in-memory database only survives on a single shared
    connection.
    """
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.log_level == "DEBUG",
        )

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=settings.log_level == "DEBUG",
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory handed to every SQL repository.

    expire_on_commit=False: entities returned by a repository stay readable
    after their session is closed (the route serializes them afterwards).
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create any missing tables for the registered models."""
    # Import for side effect: registers the tables on Base.metadata
    from postdesk.models import post, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
