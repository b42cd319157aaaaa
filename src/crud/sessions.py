"""CRUD operations for history sessions."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.fact_checks import FactCheckRecord
from models.search_results import SearchRecord
from models.sessions import Session


DEFAULT_PAGE_SIZE = 50


async def create_session(db: AsyncSession, session_type: str, query: str) -> Session:
    now = datetime.now(UTC)
    session = Session(type=session_type, query=query, created_at=now, updated_at=now)
    db.add(session)
    await db.commit()
    await db.refresh(session)
    return session


async def get_session(db: AsyncSession, session_id: UUID) -> Session | None:
    """Get a session with its results and their children eagerly loaded."""
    result = await db.execute(
        select(Session)
        .where(Session.id == session_id)
        .options(
            selectinload(Session.fact_checks).selectinload(FactCheckRecord.citations),
            selectinload(Session.searches).selectinload(SearchRecord.items),
        )
    )
    return result.scalar_one_or_none()


async def list_sessions(
    db: AsyncSession,
    *,
    session_type: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[Session]:
    """List sessions newest first, optionally filtered by type."""
    query = select(Session)
    if session_type is not None:
        query = query.where(Session.type == session_type)
    query = query.order_by(Session.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_sessions(db: AsyncSession, session_type: str | None = None) -> int:
    query = select(func.count()).select_from(Session)
    if session_type is not None:
        query = query.where(Session.type == session_type)
    result = await db.execute(query)
    return int(result.scalar_one())


def touch_session(session: Session) -> None:
    """Bump ``updated_at``; committed together with the caller's changes."""
    session.updated_at = datetime.now(UTC)


async def delete_session(db: AsyncSession, session_id: UUID) -> bool:
    """Delete a session and, by cascade, everything recorded under it.

    Returns:
        True if a session was deleted, False if it did not exist.
    """
    session = await get_session(db, session_id)
    if session is None:
        return False
    await db.delete(session)
    await db.commit()
    return True
