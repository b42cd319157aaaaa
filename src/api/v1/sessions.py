"""History endpoints: list, inspect and delete saved sessions."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from core.exceptions import SessionNotFoundError
from crud.sessions import (
    DEFAULT_PAGE_SIZE,
    count_sessions,
    delete_session,
    get_session,
    list_sessions,
)
from dependencies.db import DbSession
from models.fact_checks import FactCheckRecord
from models.search_results import SearchRecord
from schemas.fact_check import Citation, Usage
from schemas.search import SearchResultItem
from schemas.sessions import (
    DeleteSessionResponse,
    SessionDetailResponse,
    SessionListResponse,
    SessionOut,
    SessionType,
    StoredFactCheck,
    StoredSearch,
)


router = APIRouter(prefix="/sessions", tags=["sessions"])


def _stored_fact_check(record: FactCheckRecord) -> StoredFactCheck:
    usage = None
    if record.usage_total_tokens is not None:
        usage = Usage(
            prompt_tokens=record.usage_prompt_tokens or 0,
            completion_tokens=record.usage_completion_tokens or 0,
            total_tokens=record.usage_total_tokens,
        )
    return StoredFactCheck(
        id=record.id,
        is_factual=record.is_factual,
        confidence=record.confidence,
        explanation=record.explanation,
        sources=record.sources or [],
        thinking=record.thinking,
        model=record.model,
        usage=usage,
        citations=[
            Citation(
                id=c.citation_id,
                url=c.url,
                title=c.title,
                domain=c.domain,
                snippet=c.snippet,
            )
            for c in record.citations
        ],
        created_at=record.created_at,
    )


def _stored_search(record: SearchRecord) -> StoredSearch:
    return StoredSearch(
        id=record.id,
        provider=record.provider,
        search_type=record.search_type,
        answer=record.answer,
        cost_dollars=record.cost_dollars,
        request_id=record.request_id,
        total_results=record.total_results,
        results=[
            SearchResultItem(
                title=row.title,
                url=row.url,
                published_date=row.published_date,
                author=row.author,
                snippet=row.snippet,
                text=row.text,
                summary=row.summary,
                highlights=row.highlights,
                relevance_score=row.relevance_score,
            )
            for row in record.items
        ],
        created_at=record.created_at,
    )


@router.get("", response_model=SessionListResponse)
async def list_sessions_endpoint(
    db: DbSession,
    session_type: Annotated[SessionType | None, Query(alias="type")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> SessionListResponse:
    sessions = await list_sessions(
        db, session_type=session_type, limit=limit, offset=offset
    )
    total = await count_sessions(db, session_type)
    return SessionListResponse(
        sessions=[SessionOut.model_validate(s) for s in sessions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session_endpoint(session_id: UUID, db: DbSession) -> SessionDetailResponse:
    """Return a session with its most recent result."""
    session = await get_session(db, session_id)
    if session is None:
        raise SessionNotFoundError("Session not found")

    result: StoredFactCheck | StoredSearch | None = None
    if session.type == "fact-check":
        if session.fact_checks:
            result = _stored_fact_check(session.fact_checks[-1])
    elif session.searches:
        result = _stored_search(session.searches[-1])

    return SessionDetailResponse(
        session=SessionOut.model_validate(session), result=result
    )


@router.delete("/{session_id}", response_model=DeleteSessionResponse)
async def delete_session_endpoint(
    session_id: UUID, db: DbSession
) -> DeleteSessionResponse:
    if not await delete_session(db, session_id):
        raise SessionNotFoundError("Session not found")
    return DeleteSessionResponse()
