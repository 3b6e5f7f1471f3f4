"""Origin allow-list enforcement.

Browsers send ``Origin`` on cross-origin requests; callers without one
(curl, server-to-server) are let through. Origins are compared exactly,
after normalization, against the configured set. A substring check would
also admit hosts such as ``shop.example.com.attacker.net``.
"""

from typing import Callable, Iterable
from urllib.parse import urlsplit

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from services.upload_relay.app.core.exceptions import OriginNotAllowedError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(origin: str) -> str | None:
    """Reduce an origin to ``scheme://host[:port]``, or None if malformed.

    Scheme and host are lowercased, a trailing slash is dropped, and a port
    equal to the scheme default is omitted.
    """
    try:
        parts = urlsplit(origin.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in DEFAULT_PORTS or not host:
        return None
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        return None

    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def is_origin_allowed(origin: str | None, allowed_origins: Iterable[str]) -> bool:
    """Check a request origin against the allow-list.

    Args:
        origin: Value of the ``Origin`` header, None when absent
        allowed_origins: Configured origins

    Returns:
        True for an absent origin or an exact match after normalization
    """
    if origin is None:
        return True

    normalized = normalize_origin(origin)
    if normalized is None:
        return False

    allowed = {normalize_origin(o) for o in allowed_origins}
    allowed.discard(None)
    return normalized in allowed


def check_origin(origin: str | None, allowed_origins: Iterable[str]) -> None:
    """Raise ``OriginNotAllowedError`` for a disallowed origin."""
    if not is_origin_allowed(origin, allowed_origins):
        raise OriginNotAllowedError(origin or "")


class OriginGateMiddleware(BaseHTTPMiddleware):
    """Reject requests from origins outside the allow-list before routing."""

    def __init__(self, app, allowed_origins: list[str]):
        """Initialize middleware.

        Args:
            app: ASGI application
            allowed_origins: Origins permitted to call the relay
        """
        super().__init__(app)
        self.allowed_origins = list(allowed_origins)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        origin = request.headers.get("Origin")

        try:
            check_origin(origin, self.allowed_origins)
        except OriginNotAllowedError as e:
            logger.warning(
                "cors_origin_blocked",
                origin=e.origin,
                method=request.method,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=e.status_code,
                content={"success": False, "error": e.message},
            )

        return await call_next(request)
