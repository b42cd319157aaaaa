"""Session model: one user query and the results recorded for it."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


SESSION_TYPES = (
    "fact-check",
    "exa-search",
    "tavily-search",
    "linkup-search",
    "parallel-search",
)


class Session(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint(
            "type IN ({})".format(", ".join(f"'{t}'" for t in SESSION_TYPES)),
            name="ck_sessions_type",
        ),
        Index("ix_sessions_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    fact_checks = relationship(
        "FactCheckRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="FactCheckRecord.created_at",
    )
    searches = relationship(
        "SearchRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SearchRecord.created_at",
    )

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, type={self.type})>"
