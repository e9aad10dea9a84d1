import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shop.core.config import Settings

# Initialize the logger for async database events
logger = logging.getLogger(__name__)


class Database:
    """
    Owns the async engine (and therefore the connection pool) of one process.

    Built once in the application lifespan and handed to request handlers
    through ``app.state``; nothing reaches it through module globals.
    """

    def __init__(self, url: str, *, pool_size: int = 10, max_overflow: int = 20):
        if not url:
            raise RuntimeError("DATABASE_URL is not set")

        engine_kwargs = {"echo": False, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.async_database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database: Engine disposed, pool closed.")


# --- FASTAPI DEPENDENCY
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI Dependency that provides an asynchronous database session.

    Closing the session on exit rolls back anything left uncommitted,
    including work interrupted by a cancelled request.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            logger.debug("Database: New async session yielded for API request.")
            yield session
        except Exception as e:
            await session.rollback()
            logger.debug(f"Database: Session rolled back after {type(e).__name__}")
            raise
