"""Upload API endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from services.upload_relay.app.api.deps import get_app_settings, get_orchestrator
from services.upload_relay.app.api.schemas import ErrorResponse, UploadResponse
from services.upload_relay.app.config import Settings
from services.upload_relay.app.core.orchestrator import UploadOrchestrator
from services.upload_relay.app.core.schemas import IncomingUpload

router = APIRouter()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


async def read_upload(file: UploadFile | None, max_size_bytes: int) -> IncomingUpload | None:
    """Turn the multipart file part into an ``IncomingUpload``.

    Reads at most one byte past the cap, so an oversized file is never held
    in full; validation then rejects it on its size.
    """
    if file is None or not file.filename:
        return None

    content = await file.read(max_size_bytes + 1)
    size = file.size if file.size is not None else len(content)

    return IncomingUpload(
        content=content,
        filename=file.filename,
        content_type=file.content_type or DEFAULT_CONTENT_TYPE,
        size=size,
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    file: Annotated[UploadFile | None, File(description="Image or design file")] = None,
    settings: Settings = Depends(get_app_settings),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> UploadResponse:
    """Relay a file into the shop's Files storage.

    1. Validate the declared type and size
    2. Create a staged upload target
    3. Upload the bytes directly to the target
    4. Register the staged resource as a file

    Returns the public URL and file ID.
    """
    incoming = await read_upload(file, settings.max_upload_size_bytes)
    result = await orchestrator.relay(incoming)

    return UploadResponse(
        url=result.url,
        file_id=result.file_id,
        filename=result.filename,
    )
