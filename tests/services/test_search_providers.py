"""Tests for the Exa, Tavily, Linkup and Parallel search adapters."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from schemas.search import (
    ExaSearchRequest,
    LinkupSearchRequest,
    ParallelSearchRequest,
    TavilySearchRequest,
    search_metadata,
)
from services.providers import exa, linkup, parallel, tavily
from services.providers.base import convert_to_iso8601, convert_to_yyyy_mm_dd
from services.providers.exceptions import (
    ProviderAuthError,
    ProviderNotConfiguredError,
    ProviderResponseError,
)


class _Recorder:
    """MockTransport handler that remembers the last request."""

    def __init__(self, payload: dict[str, Any], status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code
        self.request: httpx.Request | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.request = request
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def body(self) -> dict[str, Any]:
        assert self.request is not None
        return json.loads(self.request.content)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class TestDateConversion:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("01/15/2024", "2024-01-15T00:00:00.000Z"),
            ("1/5/2024", "2024-01-05T00:00:00.000Z"),
            ("2024-01-15T10:00:00Z", "2024-01-15T10:00:00Z"),
            ("2024-01-15", "2024-01-15T00:00:00.000Z"),
            ("garbage", None),
            (None, None),
            ("", None),
        ],
    )
    def test_iso8601(self, value, expected) -> None:
        assert convert_to_iso8601(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("03/09/2025", "2025-03-09"),
            ("2025-03-09T12:30:00Z", "2025-03-09"),
            ("2025-03-09", "2025-03-09"),
            ("nope", None),
            (None, None),
        ],
    )
    def test_yyyy_mm_dd(self, value, expected) -> None:
        assert convert_to_yyyy_mm_dd(value) == expected


class TestExa:
    def test_request_defaults(self) -> None:
        body = exa.build_search_request(ExaSearchRequest(query="solar power"))

        assert body == {
            "query": "solar power",
            "type": "auto",
            "numResults": 10,
            "moderation": False,
            "contents": {"highlights": True},
        }

    def test_request_with_filters(self) -> None:
        request = ExaSearchRequest.model_validate(
            {
                "query": "q",
                "type": "neural",
                "numResults": 3,
                "includeDomains": ["arxiv.org"],
                "startPublishedDate": "02/01/2024",
                "endCrawlDate": "2024-06-30",
                "getText": True,
                "getHighlights": False,
                "getContext": True,
                "contextMaxCharacters": 2000,
                "category": "research paper",
            }
        )

        body = exa.build_search_request(request)

        assert body["type"] == "neural"
        assert body["numResults"] == 3
        assert body["includeDomains"] == ["arxiv.org"]
        assert "excludeDomains" not in body
        assert body["startPublishedDate"] == "2024-02-01T00:00:00.000Z"
        assert body["endCrawlDate"] == "2024-06-30T00:00:00.000Z"
        assert body["category"] == "research paper"
        assert body["contents"] == {"text": True, "context": {"maxCharacters": 2000}}

    def test_map_result(self) -> None:
        item = exa.map_result(
            {
                "title": "T",
                "url": "https://e.com",
                "text": "x" * 800,
                "highlights": ["h1"],
                "highlightScores": [0.7, 0.2],
                "publishedDate": "2024-01-01",
                "author": "A",
            }
        )

        assert item.snippet == "x" * 500
        assert item.text == "x" * 800
        assert item.relevance_score == 0.7
        assert item.highlights == ["h1"]
        assert item.author == "A"

    def test_snippet_falls_back_to_summary(self) -> None:
        item = exa.map_result({"url": "u", "summary": "short summary"})
        assert item.snippet == "short summary"
        assert item.title == ""
        assert item.relevance_score is None

    @pytest.mark.asyncio
    async def test_search(self) -> None:
        recorder = _Recorder(
            {
                "results": [{"title": "One", "url": "https://one.com"}],
                "resolvedSearchType": "neural",
                "costDollars": {"total": 0.005},
                "requestId": "req-1",
            }
        )

        async with recorder.client() as client:
            response = await exa.search(
                ExaSearchRequest(query="q"), api_key="exa-key", timeout=5, client=client
            )

        assert recorder.request.headers["x-api-key"] == "exa-key"
        assert response.search_type == "neural"
        assert response.cost_dollars == 0.005
        assert response.request_id == "req-1"
        assert response.total_results == 1
        assert search_metadata(response) == {
            "search_type": "neural",
            "cost_dollars": 0.005,
            "request_id": "req-1",
            "total_results": 1,
        }

    @pytest.mark.asyncio
    async def test_search_without_key(self) -> None:
        with pytest.raises(ProviderNotConfiguredError, match="Exa API key"):
            await exa.search(ExaSearchRequest(query="q"), api_key=None, timeout=5)


class TestTavily:
    def test_request(self) -> None:
        body = tavily.build_search_request(
            TavilySearchRequest(
                query="q", search_depth="advanced", include_answer=True, max_results=5
            )
        )
        assert body == {
            "query": "q",
            "search_depth": "advanced",
            "max_results": 5,
            "topic": "general",
            "include_answer": True,
        }

    @pytest.mark.asyncio
    async def test_search(self) -> None:
        recorder = _Recorder(
            {
                "answer": "Yes.",
                "response_time": 1.2,
                "results": [
                    {
                        "title": "T",
                        "url": "https://t.com",
                        "content": "body text",
                        "score": 0.93,
                    }
                ],
            }
        )

        async with recorder.client() as client:
            response = await tavily.search(
                TavilySearchRequest(query="q"), api_key="tv", timeout=5, client=client
            )

        assert recorder.request.headers["Authorization"] == "Bearer tv"
        assert response.answer == "Yes."
        assert response.response_time == 1.2
        (item,) = response.results
        assert item.snippet == "body text"
        assert item.relevance_score == 0.93

    @pytest.mark.asyncio
    async def test_auth_failure(self) -> None:
        recorder = _Recorder({"detail": "invalid"}, status_code=401)
        async with recorder.client() as client:
            with pytest.raises(ProviderAuthError, match="Tavily"):
                await tavily.search(
                    TavilySearchRequest(query="q"), api_key="k", timeout=5, client=client
                )


class TestLinkup:
    def test_request(self) -> None:
        body = linkup.build_search_request(
            LinkupSearchRequest(
                query="q",
                depth="deep",
                from_date="01/01/2024",
                to_date="03/31/2024",
                exclude_domains=["spam.com"],
            )
        )

        assert body == {
            "q": "q",
            "depth": "deep",
            "outputType": "sourcedAnswer",
            "includeImages": False,
            "includeInlineCitations": False,
            "includeSources": True,
            "excludeDomains": ["spam.com"],
            "fromDate": "2024-01-01",
            "toDate": "2024-03-31",
        }

    @pytest.mark.asyncio
    async def test_search_maps_sources(self) -> None:
        recorder = _Recorder(
            {
                "answer": "The answer",
                "sources": [
                    {"name": "Src", "url": "https://s.com", "snippet": "snip"},
                ],
            }
        )

        async with recorder.client() as client:
            response = await linkup.search(
                LinkupSearchRequest(query="q"), api_key="lk", timeout=5, client=client
            )

        assert response.answer == "The answer"
        (item,) = response.results
        assert (item.title, item.url, item.snippet) == ("Src", "https://s.com", "snip")

    @pytest.mark.asyncio
    async def test_structured_answer_is_not_a_string(self) -> None:
        recorder = _Recorder({"answer": {"k": "v"}, "sources": []})
        async with recorder.client() as client:
            response = await linkup.search(
                LinkupSearchRequest(query="q"), api_key="lk", timeout=5, client=client
            )
        assert response.answer is None
        assert response.total_results == 0

    @pytest.mark.asyncio
    async def test_credits_balance(self) -> None:
        recorder = _Recorder({"balance": 42.5})
        async with recorder.client() as client:
            balance = await linkup.get_credits_balance("lk", timeout=5, client=client)

        assert balance == 42.5
        assert recorder.request.method == "GET"
        assert str(recorder.request.url) == linkup.LINKUP_CREDITS_ENDPOINT

    @pytest.mark.asyncio
    async def test_credits_balance_rejects_garbage(self) -> None:
        recorder = _Recorder({"balance": "lots"})
        async with recorder.client() as client:
            with pytest.raises(ProviderResponseError):
                await linkup.get_credits_balance("lk", timeout=5, client=client)


class TestParallel:
    def test_request(self) -> None:
        body = parallel.build_search_request(
            ParallelSearchRequest(
                objective="Find X",
                search_queries=["x facts"],
                max_chars_per_result=1500,
            )
        )
        assert body == {
            "objective": "Find X",
            "max_results": 10,
            "search_queries": ["x facts"],
            "excerpts": {"max_chars_per_result": 1500},
        }

    def test_map_result_joins_excerpts(self) -> None:
        item = parallel.map_result(
            {
                "title": "P",
                "url": "https://p.com",
                "publish_date": "2024-05-01",
                "excerpts": ["first", "second"],
            }
        )
        assert item.text == "first\n\nsecond"
        assert item.snippet == "first\n\nsecond"
        assert item.published_date == "2024-05-01"

    def test_map_result_without_excerpts(self) -> None:
        item = parallel.map_result({"title": "P", "url": "u", "publish_date": ""})
        assert item.text is None
        assert item.snippet is None
        assert item.published_date is None

    @pytest.mark.asyncio
    async def test_search_sends_beta_header(self) -> None:
        recorder = _Recorder({"search_id": "s-1", "results": []})
        async with recorder.client() as client:
            response = await parallel.search(
                ParallelSearchRequest(objective="o"), api_key="pk", timeout=5, client=client
            )

        assert recorder.request.headers["parallel-beta"] == parallel.PARALLEL_BETA_HEADER
        assert response.search_id == "s-1"
        assert response.objective == "o"
