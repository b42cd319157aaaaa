"""CRUD operations for persisted fact-check results."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crud.sessions import touch_session
from models.fact_checks import FactCheckCitation, FactCheckRecord
from models.sessions import Session
from schemas.fact_check import FactCheckResult


async def save_fact_check(
    db: AsyncSession,
    session: Session,
    result: FactCheckResult,
    model: str | None = None,
) -> FactCheckRecord:
    """Store ``result`` under ``session`` with its citations in order."""
    usage = result.usage
    record = FactCheckRecord(
        session_id=session.id,
        is_factual=result.is_factual,
        confidence=result.confidence,
        explanation=result.explanation,
        sources=list(result.sources),
        thinking=result.thinking,
        model=model,
        usage_prompt_tokens=usage.prompt_tokens if usage else None,
        usage_completion_tokens=usage.completion_tokens if usage else None,
        usage_total_tokens=usage.total_tokens if usage else None,
    )
    record.citations = [
        FactCheckCitation(
            citation_id=citation.id,
            url=citation.url,
            title=citation.title,
            domain=citation.domain,
            snippet=citation.snippet,
        )
        for citation in result.citations or []
    ]
    db.add(record)
    touch_session(session)
    await db.commit()
    await db.refresh(record, attribute_names=["citations"])
    return record


async def get_latest_fact_check(
    db: AsyncSession, session_id: UUID
) -> FactCheckRecord | None:
    result = await db.execute(
        select(FactCheckRecord)
        .where(FactCheckRecord.session_id == session_id)
        .options(selectinload(FactCheckRecord.citations))
        .order_by(FactCheckRecord.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
