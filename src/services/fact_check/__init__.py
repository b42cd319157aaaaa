"""Streaming fact-check pipeline: split, normalize, relay."""

from services.fact_check.accumulator import ChunkAccumulator
from services.fact_check.exceptions import PartialStreamError, ResultParseError
from services.fact_check.normalizer import normalize_result, sanitize_content
from services.fact_check.relay import RelayOutcome, RelayState, StreamRelay
from services.fact_check.splitter import ThinkingJsonSplitter


__all__ = [
    "ChunkAccumulator",
    "PartialStreamError",
    "RelayOutcome",
    "RelayState",
    "ResultParseError",
    "StreamRelay",
    "ThinkingJsonSplitter",
    "normalize_result",
    "sanitize_content",
]
