"""CRUD operations for persisted web search results."""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crud.sessions import touch_session
from models.search_results import SearchRecord, SearchResultRow
from models.sessions import Session
from schemas.search import SearchResultItem


async def save_search_result(
    db: AsyncSession,
    session: Session,
    provider: str,
    items: list[SearchResultItem],
    metadata: dict[str, Any] | None = None,
) -> SearchRecord:
    """Store a provider's result set under ``session``.

    Args:
        db: Database session
        session: Owning history session
        provider: Provider key (``exa``, ``tavily``, ``linkup``, ``parallel``)
        items: Results in the order the provider ranked them
        metadata: Optional provider fields: search_type, answer, cost_dollars,
            request_id

    Returns:
        The created SearchRecord with its items loaded
    """
    metadata = metadata or {}
    record = SearchRecord(
        session_id=session.id,
        provider=provider,
        search_type=metadata.get("search_type"),
        answer=metadata.get("answer"),
        cost_dollars=metadata.get("cost_dollars"),
        request_id=metadata.get("request_id") or metadata.get("search_id"),
        total_results=len(items),
    )
    record.items = [
        SearchResultRow(
            position=position,
            title=item.title,
            url=item.url,
            published_date=item.published_date,
            author=item.author,
            snippet=item.snippet,
            text=item.text,
            summary=item.summary,
            highlights=item.highlights,
            relevance_score=item.relevance_score,
        )
        for position, item in enumerate(items)
    ]
    db.add(record)
    touch_session(session)
    await db.commit()
    await db.refresh(record, attribute_names=["items"])
    return record


async def get_latest_search_result(
    db: AsyncSession, session_id: UUID
) -> SearchRecord | None:
    result = await db.execute(
        select(SearchRecord)
        .where(SearchRecord.session_id == session_id)
        .options(selectinload(SearchRecord.items))
        .order_by(SearchRecord.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
