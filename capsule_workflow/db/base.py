"""Declarative base plus the process-wide engine used by SqlItemStore.

One engine is bound per process. ``init_db`` is idempotent for the URL it
was first given and refuses any other URL until ``close_db`` runs.
"""

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from capsule_workflow.core.config import get_settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_bound_url: str | None = None


async def init_db(url: str | None = None) -> None:
    """Bind the engine to *url* (or settings.database_url) and create tables.

    Raises:
        RuntimeError: an engine is already bound to a different URL
    """
    global _engine, _session_factory, _bound_url

    settings = get_settings()
    target = url or settings.database_url

    if _engine is not None:
        if target == _bound_url:
            return
        logger.warning("db_already_bound", bound_url=_bound_url, requested_url=target)
        raise RuntimeError(
            f"Database already bound to {_bound_url!r}; call close_db() before binding {target!r}"
        )

    engine = create_async_engine(target, echo=settings.debug, pool_pre_ping=True)

    # Model modules register their tables on Base.metadata at import
    import capsule_workflow.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    _engine = engine
    _session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    _bound_url = target


async def close_db() -> None:
    """Dispose the bound engine, if any, and forget its URL."""
    global _engine, _session_factory, _bound_url

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    _bound_url = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory of the bound engine.

    Raises:
        RuntimeError: init_db() has not run
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
