"""Transport error taxonomy for upstream chat and search providers.

Every failure talking to a provider is translated exactly once, at the adapter
boundary, into one of these categories. Each carries a stable ``error_code``
for log tagging and HTTP mapping, and a human-readable ``message`` that is safe
to show to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class ProviderError(Exception):
    """Base class for provider transport errors."""

    message: str
    error_code: str = "provider_error"
    provider: str | None = None

    def __str__(self) -> str:
        return self.message


class ProviderNotConfiguredError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"{provider} API key is not configured",
            error_code="not_configured",
            provider=provider,
        )


class ProviderAuthError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"{provider} API authentication failed. Please check your API key.",
            error_code="auth_failed",
            provider=provider,
        )


class ProviderRateLimitError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"{provider} API rate limit exceeded. Please try again later.",
            error_code="rate_limited",
            provider=provider,
        )


class ProviderResponseError(ProviderError):
    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(
            message=f"{provider} API error: {detail}",
            error_code="provider_error",
            provider=provider,
        )


class ProviderNetworkError(ProviderError):
    def __init__(self, provider: str, detail: str | None = None) -> None:
        message = f"Could not reach the {provider} API"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message=message, error_code="network_error", provider=provider)


class ProviderTimeoutError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"{provider} API request timed out. Please try again.",
            error_code="timeout",
            provider=provider,
        )
