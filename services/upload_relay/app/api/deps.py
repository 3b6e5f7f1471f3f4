"""API dependencies.

Everything request handlers need was built once at startup and lives on
``app.state``; nothing here reads the environment.
"""

from fastapi import Request

from services.upload_relay.app.config import Settings
from services.upload_relay.app.core.orchestrator import UploadOrchestrator


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_orchestrator(request: Request) -> UploadOrchestrator:
    """Shared upload orchestrator."""
    return request.app.state.orchestrator
