"""Session history schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .fact_check import CamelModel, Citation, Usage
from .search import SearchResultItem


SessionType = Literal[
    "fact-check", "exa-search", "tavily-search", "linkup-search", "parallel-search"
]


class SessionOut(CamelModel):
    id: UUID
    type: SessionType
    query: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class SessionListResponse(CamelModel):
    sessions: list[SessionOut]
    total: int
    limit: int
    offset: int


class StoredFactCheck(CamelModel):
    """A persisted fact-check result as shown in history."""

    id: UUID
    is_factual: bool
    confidence: float
    explanation: str
    sources: list[str] = Field(default_factory=list)
    thinking: str | None = None
    model: str | None = None
    usage: Usage | None = None
    citations: list[Citation] = Field(default_factory=list)
    created_at: datetime


class StoredSearch(CamelModel):
    """A persisted search result set as shown in history."""

    id: UUID
    provider: str
    search_type: str | None = None
    answer: str | None = None
    cost_dollars: float | None = None
    request_id: str | None = None
    total_results: int
    results: list[SearchResultItem] = Field(default_factory=list)
    created_at: datetime


class SessionDetailResponse(CamelModel):
    session: SessionOut
    result: StoredFactCheck | StoredSearch | None = None


class DeleteSessionResponse(CamelModel):
    success: bool = True
    message: str = "Session deleted"
