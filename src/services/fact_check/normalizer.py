"""Turn model output into the canonical fact-check result.

The model is asked for a bare JSON object but does not always comply: it may
wrap the object in a fenced code block, surround it with prose, or embed stray
control bytes that strict JSON rejects. Everything here is tolerant of that
noise; only :func:`parse_completion_content` raises, and only once every
recovery attempt has failed.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any
from urllib.parse import urlparse

from schemas.fact_check import Citation, FactCheckResult, Usage
from services.fact_check.exceptions import ResultParseError


logger = logging.getLogger(__name__)

# C0 controls except \t \n \r, plus DEL and the C1 range
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")
FENCED_JSON_RE = re.compile(r"```json\n?([\s\S]*?)\n?```")
GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

DEFAULT_EXPLANATION = "No explanation provided"

_decoder = json.JSONDecoder(strict=False)


def sanitize_content(text: str) -> str:
    """Strip control characters that break JSON parsing."""
    return CONTROL_CHARS_RE.sub("", text)


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text, strict=False)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def try_parse_result(candidate: str) -> dict[str, Any] | None:
    """Attempt to read a JSON object from an in-progress buffer.

    ``candidate`` starts at the first ``{``. The span through the last ``}`` is
    tried first; failing that, the first complete object at the start wins and
    whatever follows it is ignored. ``None`` means "not complete yet".
    """
    end = candidate.rfind("}")
    if end == -1:
        return None
    parsed = _loads_object(candidate[: end + 1])
    if parsed is not None:
        return parsed
    try:
        obj, _ = _decoder.raw_decode(candidate)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def extract_json_object(content: str) -> dict[str, Any] | None:
    """Recover a JSON object from a full model reply.

    Sanitizes and parses the whole reply, then falls back to a fenced
    ```json block or the widest ``{...}`` span, sanitized and parsed once more.
    """
    parsed = _loads_object(sanitize_content(content))
    if parsed is not None:
        return parsed

    logger.debug("Direct parsing failed, attempting to extract embedded JSON")
    match = FENCED_JSON_RE.search(content) or GREEDY_OBJECT_RE.search(content)
    if match is None:
        return None
    fragment = match.group(1) if match.lastindex else match.group(0)
    return _loads_object(sanitize_content(fragment))


def _format_confidence(confidence: float) -> str:
    if float(confidence).is_integer():
        return str(int(confidence))
    return f"{confidence:g}"


def synthesize_thinking(
    statement: str, is_factual: bool, confidence: float, explanation: str
) -> str:
    verdict = (
        "the statement is factual" if is_factual else "the statement is not factual"
    )
    return (
        "Analysis process:\n"
        f'1. Evaluated the statement: "{statement}"\n'
        "2. Searched and analyzed multiple sources\n"
        f"3. Found that {verdict}\n"
        f"4. Confidence level: {_format_confidence(confidence)}%\n"
        f"5. Key findings: {explanation}"
    )


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if math.isnan(value):
        return 0
    return min(max(value, 0), 100)


def normalize_result(
    data: dict[str, Any],
    statement: str,
    *,
    streamed_thinking: str | None = None,
    citations: list[Citation] | None = None,
    usage: Usage | None = None,
) -> FactCheckResult:
    """Map a parsed model object onto :class:`FactCheckResult`.

    Missing or mistyped fields fall back to defaults. ``thinking`` comes from
    the object, else from prose streamed before it, else from a fixed template.
    """
    is_factual = data.get("isFactual") is True
    confidence = _coerce_confidence(data.get("confidence"))

    explanation = data.get("explanation")
    if not isinstance(explanation, str) or not explanation:
        explanation = DEFAULT_EXPLANATION

    raw_sources = data.get("sources")
    sources = (
        [s for s in raw_sources if isinstance(s, str)]
        if isinstance(raw_sources, list)
        else []
    )

    thinking = data.get("thinking")
    if not isinstance(thinking, str) or not thinking.strip():
        if streamed_thinking and streamed_thinking.strip():
            thinking = streamed_thinking
        else:
            thinking = synthesize_thinking(
                statement, is_factual, confidence, explanation
            )

    return FactCheckResult(
        is_factual=is_factual,
        confidence=confidence,
        explanation=explanation,
        sources=sources,
        thinking=thinking,
        citations=citations,
        usage=usage,
    )


def _domain_of(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def format_citations(urls: list[Any] | None) -> list[Citation]:
    """Number citation URLs from 1 in the order the provider returned them."""
    if not urls or not isinstance(urls, list):
        return []
    return [
        Citation(id=index, url=url, domain=_domain_of(url), title=f"Source {index}")
        for index, url in enumerate(
            (u for u in urls if isinstance(u, str)), start=1
        )
    ]


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if not math.isfinite(value):
        return 0
    return max(int(value), 0)


def format_usage(raw: dict[str, Any] | None) -> Usage:
    if not isinstance(raw, dict):
        raw = {}
    return Usage(
        prompt_tokens=_coerce_count(raw.get("prompt_tokens")),
        completion_tokens=_coerce_count(raw.get("completion_tokens")),
        total_tokens=_coerce_count(raw.get("total_tokens")),
    )


def parse_completion_content(
    content: str,
    statement: str,
    *,
    citation_urls: list[Any] | None = None,
    usage: dict[str, Any] | None = None,
) -> FactCheckResult:
    """Build the final result of a non-streaming completion.

    Raises:
        ResultParseError: No JSON object could be recovered from ``content``.
    """
    data = extract_json_object(content)
    if data is None:
        logger.error("Failed to parse response content (%d chars)", len(content))
        raise ResultParseError()
    return normalize_result(
        data,
        statement,
        citations=format_citations(citation_urls),
        usage=format_usage(usage),
    )
