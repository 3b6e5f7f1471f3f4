"""Request-scoped data model for the upload relay."""

from enum import Enum as PyEnum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class UploadState(str, PyEnum):
    """Orchestrator states for one relayed upload."""

    VALIDATING = "validating"
    STAGING_REQUESTED = "staging_requested"
    BYTES_UPLOADED = "bytes_uploaded"
    FILE_REGISTERED = "file_registered"
    FAILED = "failed"


class IncomingUpload(BaseModel):
    """File received from the client, held in memory for one request."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(repr=False)
    filename: str
    content_type: str
    size: int = Field(..., ge=0)


class StagedUploadParameter(BaseModel):
    """One form field the storage endpoint requires alongside the file."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class StagedTarget(BaseModel):
    """Single-use signed upload target returned by ``stagedUploadsCreate``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    resource_url: str = Field(..., alias="resourceUrl")
    parameters: list[StagedUploadParameter] = Field(default_factory=list)

    def form_fields(self) -> list[tuple[str, str]]:
        """Parameters as (name, value) pairs in platform order, repeats kept."""
        return [(param.name, param.value) for param in self.parameters]


class ImageRef(BaseModel):
    url: str | None = None


class GenericFile(BaseModel):
    """Created file the platform classified as a generic file."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["GenericFile"] = Field("GenericFile", alias="__typename")
    id: str
    url: str | None = None


class MediaImage(BaseModel):
    """Created file the platform classified as an image; URL nests under ``image``."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["MediaImage"] = Field("MediaImage", alias="__typename")
    id: str
    image: ImageRef | None = None


CreatedFile = Union[GenericFile, MediaImage]


class UploadResult(BaseModel):
    """Outcome of a completed relay run."""

    url: str
    file_id: str
    filename: str
