"""
Database connection and session management
Uses SQLAlchemy async engine (asyncpg for PostgreSQL, aiosqlite for SQLite)
Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""
from typing import AsyncIterator

from sqlalchemy import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from comment_reactions.core.config import settings


# Validate DATABASE_URL is set
if not settings.DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Please set it in your .env file or environment."
    )

database_url = make_url(settings.DATABASE_URL)


def engine_connect_args(url: URL) -> dict:
    """
    Driver-specific connection arguments for the engine

    Only asyncpg takes a command timeout and server settings; SQLite gets none.
    Reference: https://magicstack.github.io/asyncpg/current/api/index.html#connection
    """
    if not url.drivername.startswith("postgresql"):
        return {}
    return {
        "command_timeout": settings.DB_COMMAND_TIMEOUT,
        "server_settings": {
            "application_name": settings.PROJECT_NAME,
        },
    }


# Pooling is left to the caller's deployment, each session gets a fresh connection
# Reference: https://docs.sqlalchemy.org/en/20/core/pooling.html#switching-pool-implementations
engine = create_async_engine(
    database_url,
    echo=settings.SQL_ECHO,
    poolclass=NullPool,
    connect_args=engine_connect_args(database_url),
)


# Create async session factory
# Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html#session-basics
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keep objects accessible after commit
    autoflush=False,
)


# Base class for all database models
# Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models"""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Provide a database session for one unit of work

    - Commits on success
    - Rolls back on error
    - Always closes the session
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            try:
                await session.rollback()
            except Exception:
                # Connection already gone; the original error is re-raised below
                pass
            raise
        finally:
            try:
                await session.close()
            except Exception:
                # Connection already closed or terminated
                pass


async def create_tables() -> None:
    """Create all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables() -> None:
    """Drop all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
