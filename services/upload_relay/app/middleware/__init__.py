"""Middleware components for the upload relay."""

from services.upload_relay.app.middleware.correlation import CorrelationMiddleware
from services.upload_relay.app.middleware.logging import RequestLoggingMiddleware
from services.upload_relay.app.middleware.origin_gate import (
    OriginGateMiddleware,
    is_origin_allowed,
)

__all__ = [
    "CorrelationMiddleware",
    "RequestLoggingMiddleware",
    "OriginGateMiddleware",
    "is_origin_allowed",
]
