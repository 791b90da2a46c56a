from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import AppSettings


def create_engine(settings: AppSettings) -> AsyncEngine:
    """Build the shared async connection pool. No connection is opened until first use."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
    )


def safe_url(engine: AsyncEngine) -> str:
    """Database URL with the password masked, for logs."""
    return make_url(engine.url).render_as_string(hide_password=True)


async def ping(engine: AsyncEngine) -> None:
    """Acquire one pooled connection and run a trivial query on it."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
