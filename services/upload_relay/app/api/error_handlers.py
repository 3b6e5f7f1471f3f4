"""Exception handlers that shape every failure into the error envelope.

Client-caused problems (no file, bad type, too large, malformed form) are
400. Upstream failures and anything unexpected are 500. Upstream payloads
are echoed in ``details`` only when the app runs in development.
"""

from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from services.upload_relay.app.api.schemas import ErrorResponse
from services.upload_relay.app.core.exceptions import RelayError, UpstreamError
from services.upload_relay.app.middleware.logging import get_client_ip
from shared.utils.logging import get_correlation_id, get_logger

logger = get_logger(__name__)


def _show_details(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_development)


def _error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


def _request_context(request: Request) -> dict:
    """Build request context for logging."""
    return {
        "path": request.url.path,
        "method": request.method,
        "client_ip": get_client_ip(request),
        "content_type": request.headers.get("Content-Type"),
        "content_length": request.headers.get("Content-Length"),
        "correlation_id": get_correlation_id(),
    }


async def relay_exception_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render a ``RelayError`` with its own status code."""
    details = None
    if isinstance(exc, UpstreamError) and _show_details(request):
        details = exc.details

    return _error_response(exc.status_code, exc.message, details)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are the client's fault."""
    logger.warning(
        "request_validation_failed",
        errors=exc.errors(),
        **_request_context(request),
    )
    details = None
    if _show_details(request):
        details = [
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
    return _error_response(400, "Invalid upload request", details)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for errors nothing else caught."""
    logger.exception(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        **_request_context(request),
    )
    return _error_response(500, "An internal error occurred")


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into the 500 envelope inside the middleware stack.

    Installed innermost, so the response still passes through the CORS and
    correlation layers on its way out. The app-level ``Exception`` handler
    only catches what escapes the middleware themselves.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await unhandled_exception_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Register the relay's exception handlers on ``app``."""
    app.add_exception_handler(RelayError, relay_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
