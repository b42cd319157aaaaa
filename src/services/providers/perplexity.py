"""Perplexity chat completions adapter (the fact-checking model)."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx

from schemas.fact_check import FactCheckOptions
from services.providers.base import (
    ProviderHealth,
    client_scope,
    post_json,
    probe,
    raise_for_provider_status,
    require_api_key,
    translate_transport_error,
)


logger = logging.getLogger(__name__)

PROVIDER = "Perplexity"
CHAT_COMPLETIONS_ENDPOINT = "https://api.perplexity.ai/chat/completions"


@dataclass(frozen=True)
class ChatModelConfig:
    name: str
    max_tokens: int
    reasoning: bool = False


MODELS: dict[str, ChatModelConfig] = {
    "sonar": ChatModelConfig("sonar", 4000),
    "sonar-pro": ChatModelConfig("sonar-pro", 8000),
    "sonar-reasoning": ChatModelConfig("sonar-reasoning", 4000, reasoning=True),
    "sonar-reasoning-pro": ChatModelConfig("sonar-reasoning-pro", 8000, reasoning=True),
}
DEFAULT_MODEL = "sonar"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TOP_P = 0.9
DEFAULT_TOP_K = 0
DEFAULT_FREQUENCY_PENALTY = 1
DEFAULT_PRESENCE_PENALTY = 0

FACT_CHECK_SYSTEM_PROMPT = """\
You are a fact-checking AI assistant. Analyze the given statement and respond with a JSON object containing:
- isFactual: boolean indicating if the statement is factually accurate
- confidence: number from 0-100 indicating confidence level
- explanation: string explaining the analysis in the same language as the input statement, using [n] citation references
- sources: array of strings with citation URLs from diverse sources (at least 5)
- thinking: string showing your analysis process with [n] citation references

Guidelines:
1. Search globally in multiple languages to find authoritative sources
2. Include sources from scientific organizations, educational institutions, and reputable media
3. Use numbered citations [1], [2], etc. in both explanation and thinking to reference sources
4. For non-English statements, include both local language and English sources
5. Prioritize primary sources and official records when available

Respond ONLY with the JSON object, no markdown or other formatting."""


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def build_chat_request(
    statement: str, options: FactCheckOptions, *, stream: bool
) -> dict[str, Any]:
    """Build the chat completion body; unset optional filters are omitted."""
    model = options.model or DEFAULT_MODEL
    config = MODELS[model]
    logger.info("Creating request for model: %s, stream: %s", model, stream)

    body: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": FACT_CHECK_SYSTEM_PROMPT},
            {"role": "user", "content": statement},
        ],
        "temperature": _or(options.temperature, DEFAULT_TEMPERATURE),
        "max_tokens": _or(options.max_tokens, config.max_tokens),
        "top_p": _or(options.top_p, DEFAULT_TOP_P),
        "top_k": _or(options.top_k, DEFAULT_TOP_K),
        "frequency_penalty": _or(options.frequency_penalty, DEFAULT_FREQUENCY_PENALTY),
        "presence_penalty": _or(options.presence_penalty, DEFAULT_PRESENCE_PENALTY),
        "stream": stream,
        "return_images": bool(options.return_images),
        "return_related_questions": bool(options.return_related_questions),
    }
    if options.search_domains:
        body["search_domain_filter"] = options.search_domains
    if options.search_recency:
        body["search_recency_filter"] = options.search_recency
    if options.search_after_date:
        body["search_after_date_filter"] = options.search_after_date
    if options.search_before_date:
        body["search_before_date_filter"] = options.search_before_date
    if options.search_context_size:
        body["web_search_options"] = {
            "search_context_size": options.search_context_size
        }
    return body


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


async def complete(
    statement: str,
    options: FactCheckOptions,
    *,
    api_key: str | None,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Run a non-streaming completion and return the raw response body."""
    key = require_api_key(PROVIDER, api_key)
    logger.info("Making normal (non-streaming) request")
    return await post_json(
        PROVIDER,
        CHAT_COMPLETIONS_ENDPOINT,
        body=build_chat_request(statement, options, stream=False),
        headers=_headers(key),
        timeout=timeout,
        client=client,
    )


def parse_sse_data(line: str) -> str | None:
    """Payload of a ``data: `` line, or ``None`` for any other line."""
    if not line.startswith("data: "):
        return None
    return line[6:].strip()


def decode_delta(data: str) -> str:
    """Text delta carried by one stream frame; undecodable frames yield ``""``."""
    try:
        frame = json.loads(data)
        return frame["choices"][0].get("delta", {}).get("content") or ""
    except (ValueError, KeyError, IndexError, TypeError, AttributeError):
        logger.debug("Skipping undecodable stream frame: %.200s", data)
        return ""


async def stream_completion(
    statement: str,
    options: FactCheckOptions,
    *,
    api_key: str,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[str]:
    """Yield content deltas until ``data: [DONE]`` or the stream closes."""
    headers = {**_headers(api_key), "Accept": "text/event-stream"}
    body = build_chat_request(statement, options, stream=True)
    logger.info("Making streaming request")
    try:
        async with client_scope(client, timeout) as http:
            async with http.stream(
                "POST", CHAT_COMPLETIONS_ENDPOINT, json=body, headers=headers
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise_for_provider_status(PROVIDER, response)
                async for line in response.aiter_lines():
                    data = parse_sse_data(line)
                    if data is None:
                        continue
                    if data == "[DONE]":
                        logger.info("Stream completed")
                        return
                    content = decode_delta(data)
                    if content:
                        yield content
    except httpx.HTTPError as exc:
        raise translate_transport_error(PROVIDER, exc) from exc


async def check_health(
    api_key: str | None,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ProviderHealth:
    return await probe(
        PROVIDER,
        api_key,
        CHAT_COMPLETIONS_ENDPOINT,
        body={
            "model": DEFAULT_MODEL,
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 10,
        },
        headers=_headers(api_key or ""),
        timeout=timeout,
        client=client,
    )
