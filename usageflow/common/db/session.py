from sqlalchemy import pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from usageflow.common.core.config import UsageFlowSettings
from usageflow.common.core.telemetry import get_logger

logger = get_logger(__name__)


def create_engine(settings: UsageFlowSettings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    NullPool (db_use_nullpool=True): new connection per operation (for workers)
    Default pool: connection pooling (for servers with concurrent requests)
    """
    url = settings.async_database_url
    engine_kwargs = {"echo": settings.debug}

    if url.startswith("sqlite"):
        # SQLite has no server-side pool; in-memory databases need one shared connection
        engine_kwargs["poolclass"] = pool.StaticPool
    elif settings.db_use_nullpool:
        logger.info("Using NullPool - no connection pooling (worker mode)")
        engine_kwargs["poolclass"] = pool.NullPool
    else:
        logger.info(
            f"Using connection pooling - pool_size={settings.db_pool_size}, max_overflow={settings.db_pool_overflow}"
        )
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_pool_overflow
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_recycle"] = 3600

    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
