"""
Database Session Management
===========================

Provides the async engine and session factory shared by the persistence
gateway, plus startup/shutdown hooks for the connection pool.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get or create the async database engine.

    Pool sizing comes from settings. ``pool_pre_ping`` stays off: stale
    connections are replaced by ``pool_recycle`` and LIFO ordering keeps
    the most recently used (and most likely alive) connection in front.
    """
    global _engine

    if _engine is None:
        if not settings.database_url_async:
            raise ValueError(
                "Database URL not configured. "
                "Please set SUPABASE_DATABASE_URL environment variable."
            )

        _engine = create_async_engine(
            settings.database_url_async,
            echo=False,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=False,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_use_lifo=True,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _async_session_factory

    if _async_session_factory is None:
        engine = get_engine()
        _async_session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_factory


async def create_tables() -> None:
    """Create the tasks/stats tables if they do not exist yet."""
    from app.db.base import Base
    import app.models  # noqa: F401  (registers tables on Base.metadata)

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_tables_ensured tables=%s", ",".join(sorted(Base.metadata.tables)))


async def init_db() -> None:
    """
    Initialize database connection and warm the connection pool.

    Called on application startup.  Opens a few connections up-front
    so the first real requests don't pay TCP + TLS + auth latency.
    """
    engine = get_engine()

    warm_target = min(3, engine.pool.size())
    conns = []
    try:
        for _ in range(warm_target):
            conn = await engine.connect()
            await conn.execute(text("SELECT 1"))
            conns.append(conn)
    except Exception as exc:
        logger.warning("Pool warmup partially failed: %s", exc)
    finally:
        for conn in conns:
            await conn.close()

    logger.info("db_connected pool_warmed=%d", len(conns))

    if settings.DB_CREATE_TABLES:
        await create_tables()


async def close_db() -> None:
    """
    Close database connections.

    Called on application shutdown to clean up resources.
    """
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("db_closed")
