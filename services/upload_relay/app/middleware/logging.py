"""Request/response logging middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.utils.logging import get_logger

logger = get_logger(__name__)

# Relays of large files legitimately take seconds; beyond this they are worth a look
SLOW_REQUEST_MS = 15_000


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once on arrival and once on completion.

    Method, path and correlation ID come from the log context bound by
    ``CorrelationMiddleware``; this middleware adds client and timing fields.
    """

    def __init__(
        self,
        app,
        enabled: bool = True,
        exclude_paths: list[str] | None = None,
        slow_request_ms: float = SLOW_REQUEST_MS,
    ):
        super().__init__(app)
        self.enabled = enabled
        self.exclude_paths = set(exclude_paths or ["/health", "/metrics"])
        self.slow_request_ms = slow_request_ms

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        if not self.enabled or request.url.path in self.exclude_paths:
            return await call_next(request)

        client_ip = get_client_ip(request)
        logger.info(
            "request_started",
            client_ip=client_ip,
            origin=request.headers.get("Origin"),
            content_length=request.headers.get("Content-Length"),
            user_agent=request.headers.get("User-Agent", "")[:100],
        )

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400 or duration_ms > self.slow_request_ms:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
            slow=duration_ms > self.slow_request_ms,
            client_ip=client_ip,
        )

        return response
