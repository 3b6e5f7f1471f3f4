"""Upload Relay - FastAPI application entry point."""

import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from services.upload_relay.app.api import api_router
from services.upload_relay.app.api.error_handlers import (
    UnhandledErrorMiddleware,
    register_error_handlers,
)
from services.upload_relay.app.config import Settings, get_settings
from services.upload_relay.app.core.orchestrator import UploadOrchestrator
from services.upload_relay.app.middleware.correlation import CorrelationMiddleware
from services.upload_relay.app.middleware.logging import RequestLoggingMiddleware
from services.upload_relay.app.middleware.origin_gate import OriginGateMiddleware
from services.upload_relay.app.shopify.client import ShopifyAdminClient
from shared.utils.logging import (
    CORRELATION_ID_HEADER,
    configure_logging,
    get_logger,
)
from shared.utils.metrics import MetricsMiddleware, metrics_endpoint

logger = get_logger(__name__)

VERSION = "0.1.0"


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        http_client: Outbound HTTP client; created from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logging(
        service_name=settings.service_name,
        log_level=settings.log_level,
        json_format=settings.log_json,
        environment=settings.environment,
    )

    shopify = ShopifyAdminClient(
        shop=settings.shopify_shop,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        timeout=settings.http_timeout_seconds,
        http_client=http_client,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(
            "starting_service",
            service=settings.service_name,
            shop=settings.shopify_shop,
            api_version=settings.shopify_api_version,
            environment=settings.environment,
        )

        yield

        logger.info("shutting_down_service")
        await shopify.close()
        logger.info("service_shutdown_complete")

    app = FastAPI(
        title="Shopify Upload Relay",
        description="Relays browser file uploads into Shopify Files via staged uploads",
        version=VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.state.settings = settings
    app.state.shopify = shopify
    app.state.orchestrator = UploadOrchestrator(
        client=shopify,
        max_upload_size_bytes=settings.max_upload_size_bytes,
    )

    # Starlette runs the last-added middleware first: correlation, then
    # CORS headers (and preflight), then the origin gate. Unexpected errors
    # become responses innermost so both outer layers still decorate them.
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(OriginGateMiddleware, allowed_origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )
    app.add_middleware(CorrelationMiddleware)

    register_error_handlers(app)

    app.include_router(api_router)
    app.add_route("/metrics", metrics_endpoint)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.service_name,
            "version": VERSION,
            "environment": settings.environment,
        }

    return app


def main() -> None:
    """Run the relay under uvicorn; exits with status 1 on bad configuration."""
    import uvicorn

    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging(service_name="upload-relay")
        logger.error(
            "missing_required_setting",
            errors=[".".join(str(loc) for loc in err["loc"]) for err in e.errors()],
        )
        sys.exit(1)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
