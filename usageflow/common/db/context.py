"""
Database session context management.

Holds the session of the enclosing transaction() block, if any, so that
every store call inside it shares one session and commits together.
"""

from contextvars import ContextVar
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

# Holds the current session (if inside a transaction)
_current_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "usageflow_db_session", default=None
)


def get_current_session() -> Optional[AsyncSession]:
    """Get the current session from context, if any."""
    return _current_session.get()


def set_current_session(session: AsyncSession) -> object:
    """
    Set session in context.

    Returns:
        Token for resetting the context variable
    """
    return _current_session.set(session)


def reset_current_session(token: object) -> None:
    """Reset session context using token from set_current_session."""
    _current_session.reset(token)


def in_transaction() -> bool:
    """Check if we're currently inside a transaction."""
    return get_current_session() is not None
