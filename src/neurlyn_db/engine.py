"""Process-wide async engine and session factory for the session store.

Both are built on first use from :func:`load_database_settings` (or from
settings passed to the first :func:`get_engine` call) and shared until
:func:`dispose_engine` runs at shutdown.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from neurlyn_db.config import DatabaseSettings, load_database_settings
from neurlyn_db.models.base import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Return the shared engine, creating it on the first call.

    ``settings`` only matters on that first call; later calls return the
    existing engine unchanged.
    """
    global _engine
    if _engine is None:
        settings = settings or load_database_settings()
        _engine = create_async_engine(
            settings.async_url,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
        )
        logger.info(
            "Session store engine created for %s (pool=%d+%d)",
            _engine.url.render_as_string(hide_password=True),
            settings.pool_size,
            settings.max_overflow,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the shared ``AsyncSession`` factory bound to :func:`get_engine`."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def create_schema() -> None:
    """Create the ``assessment_sessions`` table if it does not exist."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close the pool and forget the engine so the next call builds a fresh one."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Session store engine disposed")
    _engine = None
    _session_factory = None
