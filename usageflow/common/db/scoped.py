"""
Operation-scoped database sessions for the event store.

A store call borrows a session for exactly one statement and gives the
connection back as soon as it commits. Wrapping several calls in
``transaction()`` makes them share one session and one commit:

    async with transaction(session_factory):
        await store.insert("plans", plan)
        await store.insert("usage_feature_limits", limit)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usageflow.common.core.telemetry import get_logger
from usageflow.common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
)

logger = get_logger(__name__)


@asynccontextmanager
async def _committing(
    session_factory: async_sessionmaker[AsyncSession], scope: str
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"{scope} rolled back: {e}")
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Share one session across every store call in the block.

    Commits once on exit; any exception rolls the whole block back and is
    re-raised.
    """
    async with _committing(session_factory, "Transaction") as session:
        token = set_current_session(session)
        try:
            yield session
        finally:
            reset_current_session(token)


@asynccontextmanager
async def get_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for one operation, or the enclosing transaction's session."""
    existing = get_current_session()
    if existing is not None:
        # the enclosing transaction() commits
        yield existing
        return

    async with _committing(session_factory, "Operation") as session:
        yield session
