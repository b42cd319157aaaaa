"""Persisted fact-check results and their numbered citations."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class FactCheckRecord(Base):
    __tablename__ = "fact_check_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_factual: Mapped[bool] = mapped_column(Boolean, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False)
    sources: Mapped[Any] = mapped_column(JSON, nullable=False, default=list)
    thinking: Mapped[str | None] = mapped_column(Text, nullable=True)
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    usage_prompt_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_completion_tokens: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    usage_total_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    session = relationship("Session", back_populates="fact_checks")
    citations = relationship(
        "FactCheckCitation",
        back_populates="result",
        cascade="all, delete-orphan",
        order_by="FactCheckCitation.citation_id",
    )


class FactCheckCitation(Base):
    __tablename__ = "fact_check_citations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    result_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fact_check_results.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    citation_id: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="1-based [n] reference number"
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    snippet: Mapped[str | None] = mapped_column(Text, nullable=True)

    result = relationship("FactCheckRecord", back_populates="citations")
