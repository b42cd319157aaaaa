class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class SessionNotFoundError(DomainError):
    """Exception raised when a history session does not exist."""

    pass
