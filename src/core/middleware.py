"""Middleware for request correlation ID tracking and request logging."""

import logging
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.error_handler import set_correlation_id


logger = logging.getLogger(__name__)

USER_AGENT_LOG_LENGTH = 50


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request and echo it back.

    The ID comes from ``X-Correlation-ID`` when the client sends one; it is
    stored in the logging context var, on ``request.state`` and in the
    response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        user_agent = request.headers.get("user-agent", "")[:USER_AGENT_LOG_LENGTH]
        logger.info(
            "[%s] %s %s ua=%s",
            correlation_id,
            request.method,
            request.url.path,
            user_agent,
        )

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response
