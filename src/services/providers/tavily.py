"""Tavily search adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from schemas.search import SearchResultItem, TavilySearchRequest, TavilySearchResponse
from services.providers.base import (
    ProviderHealth,
    derive_snippet,
    post_json,
    probe,
    require_api_key,
)


logger = logging.getLogger(__name__)

PROVIDER = "Tavily"
TAVILY_SEARCH_ENDPOINT = "https://api.tavily.com/search"


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def build_search_request(request: TavilySearchRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "query": request.query,
        "search_depth": request.search_depth or "basic",
        "max_results": request.max_results or 10,
        "topic": request.topic or "general",
    }
    if request.include_domains:
        body["include_domains"] = request.include_domains
    if request.exclude_domains:
        body["exclude_domains"] = request.exclude_domains
    if request.include_answer is not None:
        body["include_answer"] = request.include_answer
    if request.include_images is not None:
        body["include_images"] = request.include_images
    if request.include_raw_content is not None:
        body["include_raw_content"] = request.include_raw_content
    return body


def map_result(item: dict[str, Any]) -> SearchResultItem:
    content = item.get("content")
    return SearchResultItem(
        title=item.get("title") or "",
        url=item.get("url") or "",
        published_date=item.get("published_date"),
        snippet=derive_snippet(content),
        text=content,
        relevance_score=item.get("score"),
    )


async def search(
    request: TavilySearchRequest,
    *,
    api_key: str | None,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> TavilySearchResponse:
    key = require_api_key(PROVIDER, api_key)
    logger.info("Starting Tavily search for query: %r", request.query[:100])
    payload = await post_json(
        PROVIDER,
        TAVILY_SEARCH_ENDPOINT,
        body=build_search_request(request),
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )
    results = [map_result(item) for item in payload.get("results") or []]
    logger.info("Tavily search returned %d results", len(results))
    return TavilySearchResponse(
        query=request.query,
        results=results,
        answer=payload.get("answer"),
        response_time=payload.get("response_time"),
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
        TAVILY_SEARCH_ENDPOINT,
        body={"query": "test", "max_results": 1},
        headers=_headers(api_key or ""),
        timeout=timeout,
        client=client,
    )
