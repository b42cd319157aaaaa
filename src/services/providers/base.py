"""HTTP plumbing shared by the provider adapters.

Adapters call :func:`post_json` / :func:`get_json` and get back a decoded JSON
object or one of the :mod:`services.providers.exceptions` errors; no httpx
exception escapes this module.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from services.providers.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
)


logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 500


@dataclass(frozen=True)
class ProviderHealth:
    configured: bool
    connected: bool


def require_api_key(provider: str, api_key: str | None) -> str:
    if not api_key:
        logger.error("%s API key not configured", provider)
        raise ProviderNotConfiguredError(provider)
    return api_key


@asynccontextmanager
async def client_scope(
    client: httpx.AsyncClient | None, timeout: float
) -> AsyncIterator[httpx.AsyncClient]:
    """Use the caller's client, or open a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("message")
        if isinstance(error, dict):
            error = error.get("message") or error
        if error:
            return str(error)
    return f"HTTP {response.status_code}"


def raise_for_provider_status(provider: str, response: httpx.Response) -> None:
    """Translate a non-2xx upstream response into a provider error."""
    if response.is_success:
        return
    logger.error("%s API request failed: status=%s", provider, response.status_code)
    if response.status_code == 401:
        raise ProviderAuthError(provider)
    if response.status_code == 429:
        raise ProviderRateLimitError(provider)
    raise ProviderResponseError(provider, _error_detail(response))


def translate_transport_error(provider: str, exc: httpx.HTTPError) -> ProviderError:
    if isinstance(exc, httpx.TimeoutException):
        return ProviderTimeoutError(provider)
    logger.warning(
        "%s API request failed: %s - %s", provider, type(exc).__name__, str(exc)
    )
    return ProviderNetworkError(provider, type(exc).__name__)


def decode_payload(provider: str, response: httpx.Response) -> dict[str, Any]:
    raise_for_provider_status(provider, response)
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderResponseError(provider, "invalid JSON response") from exc
    if not isinstance(payload, dict):
        raise ProviderResponseError(provider, "unexpected response shape")
    if payload.get("error"):
        raise ProviderResponseError(provider, str(payload["error"]))
    return payload


async def post_json(
    provider: str,
    url: str,
    *,
    body: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    try:
        async with client_scope(client, timeout) as http:
            response = await http.post(url, json=body, headers=headers)
    except httpx.HTTPError as exc:
        raise translate_transport_error(provider, exc) from exc
    return decode_payload(provider, response)


async def get_json(
    provider: str,
    url: str,
    *,
    headers: dict[str, str],
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    try:
        async with client_scope(client, timeout) as http:
            response = await http.get(url, headers=headers)
    except httpx.HTTPError as exc:
        raise translate_transport_error(provider, exc) from exc
    return decode_payload(provider, response)


async def probe(
    provider: str,
    api_key: str | None,
    url: str,
    *,
    body: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> ProviderHealth:
    """Send a minimal request; report reachability without raising."""
    if not api_key:
        return ProviderHealth(configured=False, connected=False)
    try:
        await post_json(
            provider, url, body=body, headers=headers, timeout=timeout, client=client
        )
    except ProviderError as exc:
        logger.error("%s API health check failed: %s", provider, exc.error_code)
        return ProviderHealth(configured=True, connected=False)
    return ProviderHealth(configured=True, connected=True)


def derive_snippet(text: str | None, limit: int = SNIPPET_LENGTH) -> str | None:
    if not text:
        return None
    return text[:limit]


def convert_to_iso8601(value: str | None) -> str | None:
    """``MM/DD/YYYY`` to midnight UTC ISO-8601; ISO input passes through."""
    if not value:
        return None
    parts = value.split("/")
    if len(parts) == 3:
        month, day, year = parts
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}T00:00:00.000Z"
    if "T" in value:
        return value
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Failed to convert date: %s", value)
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def convert_to_yyyy_mm_dd(value: str | None) -> str | None:
    """``MM/DD/YYYY`` to ``YYYY-MM-DD``; ISO dates are truncated to the day."""
    if not value:
        return None
    parts = value.split("/")
    if len(parts) == 3:
        month, day, year = parts
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Failed to convert date: %s", value)
        return None
    return parsed.date().isoformat()
