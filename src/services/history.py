"""Best-effort recording of finished fact checks and searches.

Results are saved only after the response to the caller is final. A failure
here is logged and swallowed so it can never change what the caller received.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crud.fact_checks import save_fact_check
from crud.search_results import save_search_result
from crud.sessions import create_session
from schemas.fact_check import FactCheckResult
from schemas.search import SearchResultItem


logger = logging.getLogger(__name__)

SEARCH_SESSION_TYPES: dict[str, str] = {
    "exa": "exa-search",
    "tavily": "tavily-search",
    "linkup": "linkup-search",
    "parallel": "parallel-search",
}


async def record_fact_check(
    session_factory: async_sessionmaker[AsyncSession],
    statement: str,
    result: FactCheckResult,
    model: str | None = None,
) -> UUID | None:
    """Persist a fact-check result in a new session; returns its id."""
    try:
        async with session_factory() as db:
            session = await create_session(db, "fact-check", statement)
            await save_fact_check(db, session, result, model=model)
            logger.info("Saved fact check to session %s", session.id)
            return session.id
    except Exception:
        logger.exception("Failed to save fact check history")
        return None


async def record_search(
    session_factory: async_sessionmaker[AsyncSession],
    provider: str,
    query: str,
    items: list[SearchResultItem],
    metadata: dict | None = None,
) -> UUID | None:
    """Persist a search result set in a new session; returns its id."""
    try:
        async with session_factory() as db:
            session = await create_session(db, SEARCH_SESSION_TYPES[provider], query)
            await save_search_result(db, session, provider, items, metadata)
            logger.info("Saved %s search to session %s", provider, session.id)
            return session.id
    except Exception:
        logger.exception("Failed to save %s search history", provider)
        return None
