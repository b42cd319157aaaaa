"""Route tests for the web search endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from schemas.search import (
    ExaSearchResponse,
    LinkupSearchResponse,
    ParallelSearchResponse,
    SearchResultItem,
    TavilySearchResponse,
)
from services.providers.exceptions import (
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderTimeoutError,
)


ITEMS = [
    SearchResultItem(title="First", url="https://first.com", snippet="one"),
    SearchResultItem(title="Second", url="https://second.com", relevance_score=0.5),
]


@pytest.mark.asyncio
class TestSearchEndpoints:
    async def test_exa_search(self, async_client: AsyncClient) -> None:
        response_model = ExaSearchResponse(
            query="fusion",
            results=ITEMS,
            search_type="neural",
            cost_dollars=0.01,
            request_id="r-9",
            total_results=2,
        )
        with patch(
            "api.v1.search.exa.search", AsyncMock(return_value=response_model)
        ) as mocked:
            response = await async_client.post(
                "/api/v1/exa-search",
                json={"query": "fusion", "numResults": 2, "startPublishedDate": "01/01/2024"},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["searchType"] == "neural"
        assert body["costDollars"] == 0.01
        assert body["totalResults"] == 2
        assert body["results"][1]["relevanceScore"] == 0.5

        request = mocked.await_args.args[0]
        assert request.num_results == 2
        assert request.start_published_date == "01/01/2024"

        history = await async_client.get("/api/v1/sessions")
        (session,) = history.json()["sessions"]
        assert session["type"] == "exa-search"
        detail = await async_client.get(f"/api/v1/sessions/{session['id']}")
        stored = detail.json()["result"]
        assert stored["provider"] == "exa"
        assert stored["requestId"] == "r-9"
        assert [r["title"] for r in stored["results"]] == ["First", "Second"]

    async def test_tavily_search(self, async_client: AsyncClient) -> None:
        response_model = TavilySearchResponse(
            query="q", results=ITEMS, answer="A", total_results=2
        )
        with patch("api.v1.search.tavily.search", AsyncMock(return_value=response_model)):
            response = await async_client.post(
                "/api/v1/tavily-search", json={"query": "q", "searchDepth": "advanced"}
            )

        assert response.status_code == 200
        assert response.json()["answer"] == "A"

        history = await async_client.get(
            "/api/v1/sessions", params={"type": "tavily-search"}
        )
        assert history.json()["total"] == 1

    async def test_linkup_search(self, async_client: AsyncClient) -> None:
        response_model = LinkupSearchResponse(
            query="q", results=ITEMS[:1], answer="Sourced answer", total_results=1
        )
        with patch("api.v1.search.linkup.search", AsyncMock(return_value=response_model)):
            response = await async_client.post(
                "/api/v1/linkup-search",
                json={"query": "q", "depth": "deep", "fromDate": "01/31/2024"},
            )

        assert response.status_code == 200
        assert response.json()["results"][0]["url"] == "https://first.com"

    async def test_parallel_search_records_objective(
        self, async_client: AsyncClient
    ) -> None:
        response_model = ParallelSearchResponse(
            objective="Find the tallest building",
            results=ITEMS,
            search_id="search_1",
            total_results=2,
        )
        with patch(
            "api.v1.search.parallel.search", AsyncMock(return_value=response_model)
        ):
            response = await async_client.post(
                "/api/v1/parallel-search",
                json={"objective": "Find the tallest building", "maxResults": 2},
            )

        assert response.status_code == 200
        assert response.json()["searchId"] == "search_1"

        history = await async_client.get("/api/v1/sessions")
        (session,) = history.json()["sessions"]
        assert session["type"] == "parallel-search"
        assert session["query"] == "Find the tallest building"

    async def test_linkup_credits(self, async_client: AsyncClient) -> None:
        with patch(
            "api.v1.search.linkup.get_credits_balance", AsyncMock(return_value=12.5)
        ):
            response = await async_client.get("/api/v1/linkup-credits")

        assert response.status_code == 200
        assert response.json() == {"balance": 12.5}

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ProviderNotConfiguredError("Exa"), 503),
            (ProviderTimeoutError("Exa"), 504),
            (ProviderNetworkError("Exa", "ConnectError"), 502),
        ],
    )
    async def test_provider_errors(
        self, async_client: AsyncClient, error: Exception, status_code: int
    ) -> None:
        with patch("api.v1.search.exa.search", AsyncMock(side_effect=error)):
            response = await async_client.post("/api/v1/exa-search", json={"query": "q"})

        assert response.status_code == status_code
        assert response.json()["message"] == str(error)

        history = await async_client.get("/api/v1/sessions")
        assert history.json()["total"] == 0


@pytest.mark.asyncio
class TestSearchValidation:
    @pytest.mark.parametrize(
        ("path", "payload", "message"),
        [
            ("/api/v1/exa-search", {"query": ""}, "Query is required"),
            ("/api/v1/tavily-search", {"query": "q" * 1001}, "Query must be 1000 characters or less"),
            (
                "/api/v1/linkup-search",
                {"query": "q", "includeDomains": ["bad domain!"]},
                "Invalid domain format: bad domain!",
            ),
            (
                "/api/v1/exa-search",
                {"query": "q", "endPublishedDate": "13/01/2024"},
                "Invalid date format. Expected MM/DD/YYYY, got: 13/01/2024",
            ),
            ("/api/v1/parallel-search", {"objective": " "}, "Objective is required"),
        ],
    )
    async def test_invalid_requests(
        self, async_client: AsyncClient, path: str, payload: dict, message: str
    ) -> None:
        response = await async_client.post(path, json=payload)

        assert response.status_code == 422
        assert response.json()["message"] == message

    async def test_num_results_bounds(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/v1/exa-search", json={"query": "q", "numResults": 0}
        )
        assert response.status_code == 422
