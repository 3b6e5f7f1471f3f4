"""Correlation ID middleware for request tracing."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.utils.logging import (
    CORRELATION_ID_HEADER,
    bind_request_context,
    clear_request_context,
    set_correlation_id,
)

REQUEST_CONTEXT_KEYS = ("method", "path")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to each request and echo it on the response.

    Method and path are bound into the log context too, so events logged
    deep in the orchestrator can be tied back to the request.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        request.state.correlation_id = correlation_id
        bind_request_context(method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        finally:
            clear_request_context(*REQUEST_CONTEXT_KEYS)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
