"""Shared utilities for the upload relay."""

from shared.utils.logging import (
    CORRELATION_ID_HEADER,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from shared.utils.metrics import (
    MetricsMiddleware,
    create_counter,
    create_histogram,
    metrics_endpoint,
    observe_duration,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "MetricsMiddleware",
    "create_counter",
    "create_histogram",
    "metrics_endpoint",
    "observe_duration",
]
