"""Redaction and error-exposure rules shared by logging and error handling.

Provider credentials travel in request headers (bearer tokens and API-key
headers), so anything that looks like one is scrubbed before it reaches a log
line or an error body.
"""

# Matched as case-insensitive substrings of a key name
SENSITIVE_KEYS: set[str] = {
    # Provider credentials
    "api_key",
    "apikey",
    "x-api-key",
    "authorization",
    "bearer",
    "token",
    "secret",
    "password",
    # Transport metadata that may embed credentials
    "cookie",
    "set-cookie",
    "session_token",
}

# In production, error responses only carry these fields
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Return the error body fields allowed for ``environment``."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
