"""Structured logging with correlation ID support."""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Event keys whose values never reach the log output
SENSITIVE_KEYS = frozenset(
    {"access_token", "authorization", "password", "secret", "token", "x-shopify-access-token"}
)
REDACTED = "[redacted]"

_correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def get_correlation_id() -> str:
    """Return the correlation ID bound to the current request context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if needed."""
    cid = correlation_id or uuid.uuid4().hex
    _correlation_id.set(cid)
    return cid


def bind_request_context(**values: Any) -> None:
    """Attach per-request fields (method, path, ...) to every event logged
    while the request is being handled."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context(*keys: str) -> None:
    """Drop per-request fields without touching service-wide ones."""
    structlog.contextvars.unbind_contextvars(*keys)


def add_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Processor that stamps the correlation ID onto every event."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def redact_sensitive(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Processor that masks credentials, including inside nested header dicts."""
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if str(k).lower() in SENSITIVE_KEYS else v
                for k, v in value.items()
            }
    return event_dict


def _processors(json_format: bool) -> list[Any]:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
    environment: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger for a service.

    Args:
        service_name: Bound to every event as ``service``
        log_level: DEBUG, INFO, WARNING or ERROR
        json_format: Render JSON lines (production) instead of console output
        environment: Optional deployment environment, bound as ``environment``
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    # uvicorn's access log duplicates request_completed
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    context: dict[str, Any] = {"service": service_name}
    if environment:
        context["environment"] = environment
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
