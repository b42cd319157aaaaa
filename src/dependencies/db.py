"""Database session dependency using SQLAlchemy async engine.

This sets up an AsyncSession factory bound to ``DATABASE_URL`` (a local SQLite
file by default). The engine isn't connected until first use, so importing
this module has no filesystem side effects.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import get_settings


logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def build_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(url, future=True, echo=False)
    if _is_sqlite(url):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_pragmas)
    return engine


DATABASE_URL = get_settings().DATABASE_URL
engine: AsyncEngine = build_engine(DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


def ensure_sqlite_directory(url: str | URL) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


async def init_models(target: AsyncEngine | None = None) -> None:
    """Create any missing tables."""
    from models import Base

    target = target or engine
    ensure_sqlite_directory(target.url)
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that provides an AsyncSession and ensures proper cleanup."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives the request, like stream persistence."""
    return AsyncSessionLocal


DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[
    async_sessionmaker[AsyncSession], Depends(get_session_factory)
]
