"""API request/response schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Liveness check response."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    timestamp: datetime
    shop: str
    api_version: str = Field(..., alias="apiVersion")


class UploadResponse(BaseModel):
    """Successful relay response."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    url: str
    file_id: str = Field(..., alias="fileId")
    filename: str


class ErrorResponse(BaseModel):
    """Uniform error envelope."""

    success: Literal[False] = False
    error: str
    details: Optional[Any] = None
