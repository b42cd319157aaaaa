"""Web search endpoints, one per provider, plus the Linkup credit balance."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks

from core.config import get_settings
from dependencies.db import SessionFactory
from schemas.search import (
    ExaSearchRequest,
    ExaSearchResponse,
    LinkupCreditsResponse,
    LinkupSearchRequest,
    LinkupSearchResponse,
    ParallelSearchRequest,
    ParallelSearchResponse,
    TavilySearchRequest,
    TavilySearchResponse,
    search_metadata,
)
from services.history import record_search
from services.providers import exa, linkup, parallel, tavily


router = APIRouter(tags=["search"])


@router.post("/exa-search", response_model=ExaSearchResponse)
async def exa_search(
    payload: ExaSearchRequest,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactory,
) -> ExaSearchResponse:
    settings = get_settings()
    response = await exa.search(
        payload, api_key=settings.EXA_API_KEY, timeout=settings.API_TIMEOUT_SECONDS
    )
    background_tasks.add_task(
        record_search,
        session_factory,
        "exa",
        payload.query,
        response.results,
        search_metadata(response),
    )
    return response


@router.post("/tavily-search", response_model=TavilySearchResponse)
async def tavily_search(
    payload: TavilySearchRequest,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactory,
) -> TavilySearchResponse:
    settings = get_settings()
    response = await tavily.search(
        payload, api_key=settings.TAVILY_API_KEY, timeout=settings.API_TIMEOUT_SECONDS
    )
    background_tasks.add_task(
        record_search,
        session_factory,
        "tavily",
        payload.query,
        response.results,
        search_metadata(response),
    )
    return response


@router.post("/linkup-search", response_model=LinkupSearchResponse)
async def linkup_search(
    payload: LinkupSearchRequest,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactory,
) -> LinkupSearchResponse:
    settings = get_settings()
    response = await linkup.search(
        payload, api_key=settings.LINKUP_API_KEY, timeout=settings.API_TIMEOUT_SECONDS
    )
    background_tasks.add_task(
        record_search,
        session_factory,
        "linkup",
        payload.query,
        response.results,
        search_metadata(response),
    )
    return response


@router.post("/parallel-search", response_model=ParallelSearchResponse)
async def parallel_search(
    payload: ParallelSearchRequest,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactory,
) -> ParallelSearchResponse:
    settings = get_settings()
    response = await parallel.search(
        payload,
        api_key=settings.PARALLEL_API_KEY,
        timeout=settings.API_TIMEOUT_SECONDS,
    )
    background_tasks.add_task(
        record_search,
        session_factory,
        "parallel",
        payload.objective,
        response.results,
        search_metadata(response),
    )
    return response


@router.get("/linkup-credits", response_model=LinkupCreditsResponse)
async def linkup_credits() -> LinkupCreditsResponse:
    settings = get_settings()
    balance = await linkup.get_credits_balance(
        settings.LINKUP_API_KEY, timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS
    )
    return LinkupCreditsResponse(balance=balance)
