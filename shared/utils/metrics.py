"""Prometheus metrics helpers."""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def create_counter(
    name: str,
    description: str,
    labels: list[str] | None = None,
) -> Counter:
    """Create a Prometheus counter metric.

    Args:
        name: Metric name (e.g., 'relay_uploads_total')
        description: Human-readable description
        labels: List of label names for the metric
    """
    return Counter(name, description, labels or [])


def create_histogram(
    name: str,
    description: str,
    labels: list[str] | None = None,
    buckets: tuple[float, ...] | None = None,
) -> Histogram:
    """Create a Prometheus histogram metric.

    Args:
        name: Metric name (e.g., 'relay_upload_step_duration_seconds')
        description: Human-readable description
        labels: List of label names for the metric
        buckets: Custom bucket boundaries
    """
    return Histogram(name, description, labels or [], buckets=buckets or DEFAULT_BUCKETS)


@contextmanager
def observe_duration(histogram: Histogram, **labels: str) -> Iterator[None]:
    """Observe the wall time of the ``with`` block, whether or not it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        metric = histogram.labels(**labels) if labels else histogram
        metric.observe(time.perf_counter() - start)


HTTP_REQUESTS = create_counter(
    "http_requests_total",
    "HTTP requests by method, route and status",
    ["method", "endpoint", "status_code"],
)

HTTP_LATENCY = create_histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
)

HTTP_IN_FLIGHT = Gauge(
    "http_requests_in_flight",
    "HTTP requests currently being handled",
)


def route_template(request: Request) -> str:
    """Matched route path (``/items/{item_id}``), or the raw path if none matched."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time every request except the scrape endpoint itself."""

    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or ["/metrics"])

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        HTTP_IN_FLIGHT.inc()
        try:
            response = await call_next(request)
        finally:
            HTTP_IN_FLIGHT.dec()
        duration = time.perf_counter() - start_time

        endpoint = route_template(request)
        HTTP_REQUESTS.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_LATENCY.labels(method=request.method, endpoint=endpoint).observe(duration)

        return response


async def metrics_endpoint(request: Request) -> StarletteResponse:
    """Expose every registered metric in the Prometheus text format."""
    return StarletteResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
