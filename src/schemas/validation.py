"""Field validators shared by fact-check and search request schemas."""

from __future__ import annotations

import re
from datetime import date


MAX_STATEMENT_LENGTH: int = 10_000
MAX_QUERY_LENGTH: int = 1_000
MAX_DOMAINS: int = 20

_DOMAIN_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_MMDDYYYY_RE = re.compile(r"^(0[1-9]|1[0-2])/(0[1-9]|[12]\d|3[01])/\d{4}$")


def validate_domains(domains: list[str] | None) -> list[str] | None:
    """Check a domain filter list; a leading ``-`` marks an exclusion."""
    if domains is None:
        return None
    if len(domains) > MAX_DOMAINS:
        raise ValueError(f"Too many domains. Maximum {MAX_DOMAINS} allowed")
    for domain in domains:
        clean = domain[1:] if domain.startswith("-") else domain
        if not _DOMAIN_RE.match(clean):
            raise ValueError(f"Invalid domain format: {domain}")
    return domains


def validate_mmddyyyy(value: str | None) -> str | None:
    """Require ``MM/DD/YYYY`` and a date that exists on the calendar."""
    if not value:
        return None
    if not _MMDDYYYY_RE.match(value):
        raise ValueError(f"Invalid date format. Expected MM/DD/YYYY, got: {value}")
    month, day, year = (int(part) for part in value.split("/"))
    try:
        date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc
    return value


def validate_non_blank(value: str, max_length: int, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} must be {max_length} characters or less")
    return value
