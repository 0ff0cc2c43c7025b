"""
PairQuiz — Database engine, declarative base and request-scoped sessions

One async engine is built from ``DATABASE_URL`` when this module is
imported.  PostgreSQL (asyncpg) is the production backend; SQLite
(aiosqlite) backs the test-suite and local demos.

Transaction ownership: repositories and services only ``flush``.
``get_db`` commits once the route returns and rolls back if anything
raised, so a failed request never leaves a partial write behind.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pairquiz.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Metadata root for every PairQuiz table (see ``pairquiz.models``)."""


# Connection pool tuning for server backends.  SQLite keeps the
# SQLAlchemy defaults for its dialect.
_SERVER_POOL = {
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def normalise_database_url(url: str) -> str:
    """Return ``url`` with a bare ``postgresql://`` scheme switched to asyncpg."""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    url = normalise_database_url(url)
    pool_options = {} if url.startswith("sqlite") else dict(_SERVER_POOL)
    return create_async_engine(url, echo=echo, **pool_options)


def _engine_from_settings() -> AsyncEngine:
    settings = get_settings()
    built = build_engine(settings.DATABASE_URL, echo=settings.LOG_LEVEL == "DEBUG")
    logger.info("Async engine ready (dialect=%s)", built.dialect.name)
    return built


engine = _engine_from_settings()

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one ``AsyncSession`` (and one transaction) per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
