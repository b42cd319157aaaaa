"""Parallel search adapter (beta search-extract API)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from schemas.search import (
    ParallelSearchRequest,
    ParallelSearchResponse,
    SearchResultItem,
)
from services.providers.base import (
    ProviderHealth,
    derive_snippet,
    post_json,
    probe,
    require_api_key,
)


logger = logging.getLogger(__name__)

PROVIDER = "Parallel"
PARALLEL_SEARCH_ENDPOINT = "https://api.parallel.ai/v1beta/search"
PARALLEL_BETA_HEADER = "search-extract-2025-10-10"


def _headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "Content-Type": "application/json",
        "parallel-beta": PARALLEL_BETA_HEADER,
    }


def build_search_request(request: ParallelSearchRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "objective": request.objective,
        "max_results": request.max_results or 10,
    }
    if request.search_queries:
        body["search_queries"] = request.search_queries
    if request.max_chars_per_result:
        body["excerpts"] = {"max_chars_per_result": request.max_chars_per_result}
    return body


def map_result(item: dict[str, Any]) -> SearchResultItem:
    excerpts = [e for e in item.get("excerpts") or [] if isinstance(e, str)]
    combined = "\n\n".join(excerpts)
    return SearchResultItem(
        title=item.get("title") or "",
        url=item.get("url") or "",
        published_date=item.get("publish_date") or None,
        snippet=derive_snippet(combined),
        text=combined or None,
    )


async def search(
    request: ParallelSearchRequest,
    *,
    api_key: str | None,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ParallelSearchResponse:
    key = require_api_key(PROVIDER, api_key)
    logger.info("Starting Parallel search for objective: %r", request.objective[:100])
    payload = await post_json(
        PROVIDER,
        PARALLEL_SEARCH_ENDPOINT,
        body=build_search_request(request),
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )
    results = [map_result(item) for item in payload.get("results") or []]
    logger.info("Parallel search returned %d results", len(results))
    return ParallelSearchResponse(
        objective=request.objective,
        results=results,
        search_id=payload.get("search_id"),
        total_results=len(results),
    )


async def check_health(
    api_key: str | None,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ProviderHealth:
    return await probe(
        PROVIDER,
        api_key,
        PARALLEL_SEARCH_ENDPOINT,
        body={"objective": "test", "max_results": 1},
        headers=_headers(api_key or ""),
        timeout=timeout,
        client=client,
    )
