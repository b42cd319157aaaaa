"""Adapters for the upstream chat and web search APIs."""

from services.providers.base import ProviderHealth
from services.providers.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
)


__all__ = [
    "ProviderAuthError",
    "ProviderError",
    "ProviderHealth",
    "ProviderNetworkError",
    "ProviderNotConfiguredError",
    "ProviderRateLimitError",
    "ProviderResponseError",
    "ProviderTimeoutError",
]
