"""Database session management.

This module provides async database engine and session management
using SQLAlchemy 2.0 async patterns.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from toolsmith.core.config import settings
from toolsmith.core.logging import get_logger

logger = get_logger(__name__)

# SQLite connections are file handles, so no pool sizing is passed here
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DATABASE_ECHO,
)

# Create async session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency for FastAPI.

    Yields an async session and ensures proper cleanup after request.
    Commits on success, rolls back on exception.

    Yields:
        AsyncSession: The database session for the request.

    Example:
        @app.get("/tools")
        async def list_tools(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Tool))
            return result.scalars().all()
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet.

    Args:
        bind: Engine to create tables on. Defaults to the module engine.
    """
    # Import models so every table is registered on Base.metadata
    from toolsmith.models import Base

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready at {target.url.render_as_string(hide_password=True)}")


__all__ = [
    "async_session",
    "engine",
    "get_db",
    "init_db",
]
