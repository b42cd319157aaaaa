"""Errors raised while recovering a structured result from model output."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class ResultParseError(Exception):
    """No parseable JSON result could be recovered from the model output."""

    message: str = "Failed to parse fact-checking result"
    error_code: str = "parse_failed"

    def __str__(self) -> str:
        return self.message


class PartialStreamError(ResultParseError):
    """The upstream stream ended while a JSON object was still incomplete."""

    def __init__(self, message: str = "Failed to parse final result") -> None:
        super().__init__(message=message, error_code="partial_stream")
