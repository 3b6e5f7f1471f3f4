"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from services.upload_relay.app.api.deps import get_app_settings
from services.upload_relay.app.api.schemas import HealthResponse
from services.upload_relay.app.config import Settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Liveness check. Does not contact Shopify."""
    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        shop=settings.shopify_shop,
        api_version=settings.shopify_api_version,
    )
