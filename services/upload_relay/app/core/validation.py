"""Upload validation.

The checks here look at declared metadata only: the content type the client
sent and the filename extension. File bytes are never inspected, so a client
that lies about its content type gets through. The storage platform does its
own processing of the file after registration.
"""

from services.upload_relay.app.core.exceptions import (
    FileTooLargeError,
    MissingFileError,
    UnsupportedFileTypeError,
)
from services.upload_relay.app.core.schemas import IncomingUpload
from shared.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/svg+xml",
        "image/gif",
        "application/pdf",
        "application/postscript",  # .ai, .eps
    }
)

ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "svg", "gif", "pdf", "ai", "eps"}
)

DEFAULT_MAX_UPLOAD_SIZE = 20 * 1024 * 1024


def is_allowed_type(content_type: str | None, filename: str | None) -> bool:
    """Check the declared content type, falling back to the filename extension."""
    if content_type and content_type.split(";")[0].strip().lower() in ALLOWED_CONTENT_TYPES:
        return True

    if filename:
        _, dot, ext = filename.rpartition(".")
        return bool(dot) and ext.lower() in ALLOWED_EXTENSIONS

    return False


def validate_upload(
    upload: IncomingUpload | None,
    max_size_bytes: int = DEFAULT_MAX_UPLOAD_SIZE,
) -> IncomingUpload:
    """Accept or reject an upload before any network call is made.

    Args:
        upload: Parsed upload, or None when the request had no file part
        max_size_bytes: Size cap in bytes

    Returns:
        The same upload, when accepted

    Raises:
        MissingFileError: No file, or a file part without a filename
        FileTooLargeError: Declared size exceeds the cap
        UnsupportedFileTypeError: Neither content type nor extension is allowed
    """
    if upload is None or not upload.filename:
        raise MissingFileError()

    if upload.size > max_size_bytes:
        logger.warning(
            "upload_rejected_size",
            filename=upload.filename,
            size=upload.size,
            max_size=max_size_bytes,
        )
        raise FileTooLargeError(upload.size, max_size_bytes)

    if not is_allowed_type(upload.content_type, upload.filename):
        logger.warning(
            "upload_rejected_type",
            filename=upload.filename,
            content_type=upload.content_type,
        )
        raise UnsupportedFileTypeError(upload.filename, upload.content_type)

    return upload
