"""Fact-check request options and the canonical result shape.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON the browser client sends and expects back.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .validation import (
    MAX_STATEMENT_LENGTH,
    validate_domains,
    validate_mmddyyyy,
    validate_non_blank,
)


ChatModel = Literal["sonar", "sonar-pro", "sonar-reasoning", "sonar-reasoning-pro"]
SearchRecency = Literal["month", "week", "day", "hour"]
SearchContextSize = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FactCheckOptions(CamelModel):
    """Sampling and search options forwarded to the chat completion API."""

    model: ChatModel | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0, le=2)
    frequency_penalty: float | None = Field(default=None, ge=0, le=2)
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)
    top_k: int | None = Field(default=None, ge=0, le=2048)
    top_p: float | None = Field(default=None, ge=0, le=1)
    search_domains: list[str] | None = None
    search_recency: SearchRecency | None = None
    search_after_date: str | None = Field(default=None, description="MM/DD/YYYY")
    search_before_date: str | None = Field(default=None, description="MM/DD/YYYY")
    search_context_size: SearchContextSize | None = None
    return_images: bool | None = None
    return_related_questions: bool | None = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    @field_validator("search_domains")
    @classmethod
    def _check_domains(cls, v: list[str] | None) -> list[str] | None:
        return validate_domains(v)

    @field_validator("search_after_date", "search_before_date")
    @classmethod
    def _check_dates(cls, v: str | None) -> str | None:
        return validate_mmddyyyy(v)


class FactCheckRequest(FactCheckOptions):
    """Request payload for ``POST /check-fact``."""

    statement: str
    stream: bool = False

    @field_validator("statement")
    @classmethod
    def _check_statement(cls, v: str) -> str:
        return validate_non_blank(v, MAX_STATEMENT_LENGTH, "Statement")

    def options(self) -> FactCheckOptions:
        return FactCheckOptions.model_validate(
            self.model_dump(exclude={"statement", "stream"})
        )


class Citation(CamelModel):
    """A numbered source referenced as ``[n]`` in explanation and thinking."""

    id: int = Field(..., ge=1)
    url: str
    domain: str | None = None
    title: str | None = None
    snippet: str | None = None


class Usage(CamelModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class FactCheckResult(CamelModel):
    """Canonical fact-check outcome, independent of the upstream provider."""

    is_factual: bool = False
    confidence: float = Field(default=0, ge=0, le=100)
    explanation: str
    sources: list[str] = Field(default_factory=list)
    thinking: str | None = None
    citations: list[Citation] | None = None
    usage: Usage | None = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
