"""Web search request and response schemas.

Each provider gets its own request model because their option sets barely
overlap, but all of them answer with the same :class:`SearchResultItem`.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .fact_check import CamelModel
from .validation import (
    MAX_QUERY_LENGTH,
    validate_domains,
    validate_mmddyyyy,
    validate_non_blank,
)


class SearchResultItem(CamelModel):
    """Canonical search hit, whichever provider produced it."""

    title: str = ""
    url: str = ""
    published_date: str | None = None
    author: str | None = None
    snippet: str | None = None
    text: str | None = None
    summary: str | None = None
    highlights: list[str] | None = None
    relevance_score: float | None = None


class _SearchRequest(CamelModel):
    query: str
    include_domains: list[str] | None = None
    exclude_domains: list[str] | None = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    @field_validator("query")
    @classmethod
    def _check_query(cls, v: str) -> str:
        return validate_non_blank(v, MAX_QUERY_LENGTH, "Query")

    @field_validator("include_domains", "exclude_domains")
    @classmethod
    def _check_domains(cls, v: list[str] | None) -> list[str] | None:
        return validate_domains(v)


class ExaSearchRequest(_SearchRequest):
    type: Literal["auto", "neural", "keyword", "fast"] | None = None
    num_results: int | None = Field(default=None, ge=1, le=100)
    category: str | None = None
    user_location: str | None = None
    start_published_date: str | None = None
    end_published_date: str | None = None
    start_crawl_date: str | None = None
    end_crawl_date: str | None = None
    include_text: list[str] | None = None
    exclude_text: list[str] | None = None
    moderation: bool | None = None
    get_text: bool = False
    get_summary: bool = False
    get_highlights: bool = True
    get_context: bool = False
    context_max_characters: int | None = Field(default=None, gt=0)

    @field_validator("start_published_date", "end_published_date")
    @classmethod
    def _check_dates(cls, v: str | None) -> str | None:
        return validate_mmddyyyy(v)


class TavilySearchRequest(_SearchRequest):
    search_depth: Literal["basic", "advanced"] | None = None
    max_results: int | None = Field(default=None, ge=1, le=20)
    topic: Literal["general", "news", "finance"] | None = None
    include_answer: bool | None = None
    include_images: bool | None = None
    include_raw_content: bool | None = None


class LinkupSearchRequest(_SearchRequest):
    depth: Literal["standard", "deep"] | None = None
    output_type: Literal["sourcedAnswer", "searchResults", "structured"] | None = None
    structured_output_schema: str | None = None
    include_images: bool | None = None
    include_inline_citations: bool | None = None
    include_sources: bool | None = None
    from_date: str | None = Field(default=None, description="MM/DD/YYYY")
    to_date: str | None = Field(default=None, description="MM/DD/YYYY")

    @field_validator("from_date", "to_date")
    @classmethod
    def _check_dates(cls, v: str | None) -> str | None:
        return validate_mmddyyyy(v)


class ParallelSearchRequest(CamelModel):
    objective: str
    search_queries: list[str] | None = None
    max_results: int | None = Field(default=None, ge=1, le=40)
    max_chars_per_result: int | None = Field(default=None, gt=0)

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    @field_validator("objective")
    @classmethod
    def _check_objective(cls, v: str) -> str:
        return validate_non_blank(v, MAX_QUERY_LENGTH, "Objective")


class ExaSearchResponse(CamelModel):
    success: bool = True
    query: str
    results: list[SearchResultItem]
    search_type: str
    cost_dollars: float | None = None
    request_id: str | None = None
    total_results: int


class TavilySearchResponse(CamelModel):
    success: bool = True
    query: str
    results: list[SearchResultItem]
    answer: str | None = None
    response_time: float | None = None
    total_results: int


class LinkupSearchResponse(CamelModel):
    success: bool = True
    query: str
    results: list[SearchResultItem]
    answer: str | None = None
    total_results: int


class ParallelSearchResponse(CamelModel):
    success: bool = True
    objective: str
    results: list[SearchResultItem]
    search_id: str | None = None
    total_results: int


class LinkupCreditsResponse(CamelModel):
    balance: float


def search_metadata(response: CamelModel) -> dict[str, Any]:
    """Provider-specific fields of a search response, for persistence."""
    return response.model_dump(exclude={"success", "query", "objective", "results"})
