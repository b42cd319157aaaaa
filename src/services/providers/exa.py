"""Exa neural search adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from schemas.search import ExaSearchRequest, ExaSearchResponse, SearchResultItem
from services.providers.base import (
    ProviderHealth,
    convert_to_iso8601,
    derive_snippet,
    post_json,
    probe,
    require_api_key,
)


logger = logging.getLogger(__name__)

PROVIDER = "Exa"
EXA_SEARCH_ENDPOINT = "https://api.exa.ai/search"
DEFAULT_NUM_RESULTS = 10


def _headers(api_key: str) -> dict[str, str]:
    return {"x-api-key": api_key, "Content-Type": "application/json"}


def build_search_request(request: ExaSearchRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "query": request.query,
        "type": request.type or "auto",
        "numResults": request.num_results or DEFAULT_NUM_RESULTS,
        "moderation": bool(request.moderation),
    }
    passthrough = {
        "includeDomains": request.include_domains,
        "excludeDomains": request.exclude_domains,
        "userLocation": request.user_location,
        "category": request.category,
        "includeText": request.include_text,
        "excludeText": request.exclude_text,
    }
    body.update({k: v for k, v in passthrough.items() if v is not None})

    dates = {
        "startPublishedDate": request.start_published_date,
        "endPublishedDate": request.end_published_date,
        "startCrawlDate": request.start_crawl_date,
        "endCrawlDate": request.end_crawl_date,
    }
    for key, value in dates.items():
        converted = convert_to_iso8601(value)
        if converted:
            body[key] = converted

    contents: dict[str, Any] = {}
    if request.get_text:
        contents["text"] = True
    if request.get_summary:
        contents["summary"] = True
    if request.get_highlights:
        contents["highlights"] = True
    if request.get_context:
        contents["context"] = (
            {"maxCharacters": request.context_max_characters}
            if request.context_max_characters
            else True
        )
    if contents:
        body["contents"] = contents
    elif request.get_context:
        body["context"] = True
    return body


def map_result(item: dict[str, Any]) -> SearchResultItem:
    scores = item.get("highlightScores") or []
    return SearchResultItem(
        title=item.get("title") or "",
        url=item.get("url") or "",
        published_date=item.get("publishedDate"),
        author=item.get("author"),
        snippet=derive_snippet(item.get("text")) or item.get("summary"),
        text=item.get("text"),
        summary=item.get("summary"),
        highlights=item.get("highlights"),
        relevance_score=scores[0] if scores else None,
    )


async def search(
    request: ExaSearchRequest,
    *,
    api_key: str | None,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ExaSearchResponse:
    key = require_api_key(PROVIDER, api_key)
    logger.info("Starting Exa search for query: %r", request.query[:100])
    payload = await post_json(
        PROVIDER,
        EXA_SEARCH_ENDPOINT,
        body=build_search_request(request),
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )
    results = [map_result(item) for item in payload.get("results") or []]
    logger.info("Exa search returned %d results", len(results))
    cost = payload.get("costDollars") or {}
    return ExaSearchResponse(
        query=request.query,
        results=results,
        search_type=payload.get("resolvedSearchType")
        or payload.get("searchType")
        or "auto",
        cost_dollars=cost.get("total") if isinstance(cost, dict) else None,
        request_id=payload.get("requestId"),
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
        EXA_SEARCH_ENDPOINT,
        body={"query": "test", "numResults": 1},
        headers=_headers(api_key or ""),
        timeout=timeout,
        client=client,
    )
