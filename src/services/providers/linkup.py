"""Linkup search adapter, including the account credit balance."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from schemas.search import LinkupSearchRequest, LinkupSearchResponse, SearchResultItem
from services.providers.base import (
    ProviderHealth,
    convert_to_yyyy_mm_dd,
    get_json,
    post_json,
    probe,
    require_api_key,
)
from services.providers.exceptions import ProviderResponseError


logger = logging.getLogger(__name__)

PROVIDER = "Linkup"
LINKUP_SEARCH_ENDPOINT = "https://api.linkup.so/v1/search"
LINKUP_CREDITS_ENDPOINT = "https://api.linkup.so/v1/credits/balance"


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def build_search_request(request: LinkupSearchRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "q": request.query,
        "depth": request.depth or "standard",
        "outputType": request.output_type or "sourcedAnswer",
        "includeImages": bool(request.include_images),
        "includeInlineCitations": bool(request.include_inline_citations),
        "includeSources": request.include_sources is not False,
    }
    if request.include_domains is not None:
        body["includeDomains"] = request.include_domains
    if request.exclude_domains is not None:
        body["excludeDomains"] = request.exclude_domains
    from_date = convert_to_yyyy_mm_dd(request.from_date)
    if from_date:
        body["fromDate"] = from_date
    to_date = convert_to_yyyy_mm_dd(request.to_date)
    if to_date:
        body["toDate"] = to_date
    if request.structured_output_schema:
        body["structuredOutputSchema"] = request.structured_output_schema
    return body


def map_source(source: dict[str, Any]) -> SearchResultItem:
    return SearchResultItem(
        title=source.get("name") or "",
        url=source.get("url") or "",
        snippet=source.get("snippet"),
    )


async def search(
    request: LinkupSearchRequest,
    *,
    api_key: str | None,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> LinkupSearchResponse:
    key = require_api_key(PROVIDER, api_key)
    logger.info("Starting Linkup search for query: %r", request.query[:100])
    payload = await post_json(
        PROVIDER,
        LINKUP_SEARCH_ENDPOINT,
        body=build_search_request(request),
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )
    results = [map_source(source) for source in payload.get("sources") or []]
    logger.info("Linkup search returned %d sources", len(results))
    answer = payload.get("answer")
    return LinkupSearchResponse(
        query=request.query,
        results=results,
        answer=answer if isinstance(answer, str) else None,
        total_results=len(results),
    )


async def get_credits_balance(
    api_key: str | None,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> float:
    key = require_api_key(PROVIDER, api_key)
    payload = await get_json(
        PROVIDER,
        LINKUP_CREDITS_ENDPOINT,
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )
    balance = payload.get("balance") or 0
    if isinstance(balance, bool) or not isinstance(balance, int | float):
        raise ProviderResponseError(PROVIDER, "invalid credit balance")
    return float(balance)


async def check_health(
    api_key: str | None,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ProviderHealth:
    return await probe(
        PROVIDER,
        api_key,
        LINKUP_SEARCH_ENDPOINT,
        body={"q": "test", "depth": "standard", "outputType": "sourcedAnswer"},
        headers=_headers(api_key or ""),
        timeout=timeout,
        client=client,
    )
