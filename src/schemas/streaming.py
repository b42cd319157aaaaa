"""Schemas for fact-check SSE streaming."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


DONE_FRAME: str = "data: [DONE]\n\n"


class FactCheckStreamEvent(BaseModel):
    """One frame of the downstream event stream.

    ``content`` is prose for ``thinking``, the camelCase result body for
    ``result`` and a human-readable message for ``error``.
    """

    type: Literal["thinking", "result", "error"]
    content: str | dict[str, Any]

    model_config = ConfigDict(extra="forbid")

    def to_sse(self) -> str:
        payload = json.dumps(
            {"type": self.type, "content": self.content}, ensure_ascii=False
        )
        return f"data: {payload}\n\n"
