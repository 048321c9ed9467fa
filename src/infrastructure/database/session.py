"""Database session management."""

from typing import Any, AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """Engine keyword arguments for a database URL.

    Supabase's Supavisor pooler runs in transaction mode, where asyncpg's
    prepared statement cache breaks, so the cache is disabled for pooler
    hosts. SQLite gets no pool tuning.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "postgresql":
        return {}

    connect_args: dict[str, Any] = {}
    if parsed.host and "pooler.supabase.com" in parsed.host:
        connect_args["statement_cache_size"] = 0
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "connect_args": connect_args,
    }


def create_engine() -> AsyncEngine:
    return create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        **engine_options(settings.async_database_url),
    )


engine = create_engine()

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session_factory() as session:
        yield session
