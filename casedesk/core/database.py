"""
CaseDesk Database Module

One async engine per process, created on first use from ``Settings.database_url``.
SQLite (aiosqlite) is the development default; PostgreSQL runs through asyncpg.
Routes get a session from ``get_db``; the CLI and seed code use ``get_db_session``.
Both commit when the caller finishes cleanly and roll back on any exception.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from casedesk.core.config import Settings, get_settings


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by every CaseDesk table."""


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(settings: Settings) -> dict[str, Any]:
    if settings.database_url.startswith("sqlite"):
        # Each request opens its own file connection
        return {"poolclass": NullPool, "connect_args": {"check_same_thread": False}}
    return {
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.db_echo,
            **_engine_options(settings),
        )
        logger.debug("Database engine created for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Records stay readable after commit; routers serialize them afterwards
        _session_factory = async_sessionmaker(bind=get_engine(), expire_on_commit=False, autoflush=False)
    return _session_factory


@asynccontextmanager
async def _session_scope() -> AsyncIterator[AsyncSession]:
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

        @router.get("/legal-cases/{case_id}")
        async def show(case_id: int, db: AsyncSession = Depends(get_db)):
            ...
    """
    async with _session_scope() as session:
        yield session


def get_db_session():
    """Session for code running outside a request (CLI commands, seeding)."""
    return _session_scope()


async def ping(session: AsyncSession) -> None:
    """Raises when the database does not answer."""
    await session.execute(text("SELECT 1"))


async def init_db() -> None:
    """Create any missing tables."""
    from casedesk.models import models  # noqa: F401  registers every table

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine; the next call to ``get_engine`` builds a fresh one."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
