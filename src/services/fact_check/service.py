"""Entry points for checking a statement, streamed or not."""

from __future__ import annotations

import asyncio
import logging

import httpx

from core.config import Settings, get_settings
from schemas.fact_check import FactCheckOptions, FactCheckResult
from services.fact_check.exceptions import ResultParseError
from services.fact_check.normalizer import parse_completion_content
from services.fact_check.relay import StreamRelay
from services.providers import perplexity
from services.providers.base import require_api_key
from services.providers.exceptions import ProviderTimeoutError


logger = logging.getLogger(__name__)


def _preview(statement: str) -> str:
    return statement[:100] + ("..." if len(statement) > 100 else "")


async def check_fact(
    statement: str,
    options: FactCheckOptions,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> FactCheckResult:
    """Check ``statement`` with one non-streaming completion.

    Raises:
        ProviderError: the upstream call failed or timed out.
        ResultParseError: the reply held no recoverable JSON object.
    """
    settings = settings or get_settings()
    logger.info('Starting fact check for statement: "%s"', _preview(statement))
    try:
        async with asyncio.timeout(settings.API_TIMEOUT_SECONDS):
            payload = await perplexity.complete(
                statement,
                options,
                api_key=settings.PERPLEXITY_API_KEY,
                timeout=settings.API_TIMEOUT_SECONDS,
                client=client,
            )
    except TimeoutError as exc:
        raise ProviderTimeoutError(perplexity.PROVIDER) from exc

    choices = payload.get("choices") or [{}]
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not content or not isinstance(content, str):
        logger.error("No content in completion response")
        raise ResultParseError("No content in response")

    result = parse_completion_content(
        content,
        statement,
        citation_urls=payload.get("citations"),
        usage=payload.get("usage"),
    )
    logger.info(
        "Fact check completed: is_factual=%s confidence=%s",
        result.is_factual,
        result.confidence,
    )
    return result


def stream_fact_check(
    statement: str,
    options: FactCheckOptions,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> StreamRelay:
    """Prepare a relay for ``statement``; nothing is sent until it is iterated.

    Raises:
        ProviderNotConfiguredError: no API key, checked before any stream opens.
    """
    settings = settings or get_settings()
    api_key = require_api_key(perplexity.PROVIDER, settings.PERPLEXITY_API_KEY)
    logger.info('Starting streamed fact check for statement: "%s"', _preview(statement))
    chunks = perplexity.stream_completion(
        statement,
        options,
        api_key=api_key,
        timeout=settings.API_TIMEOUT_SECONDS,
        client=client,
    )
    return StreamRelay(statement, chunks, timeout=settings.API_TIMEOUT_SECONDS)
