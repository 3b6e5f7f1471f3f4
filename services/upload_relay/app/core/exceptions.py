"""Error hierarchy for the upload relay.

Every failure the relay knows about is a ``RelayError``. The HTTP layer maps
``UploadValidationError`` to 400 and ``UpstreamError`` to 500; anything else
that escapes a handler is treated as an internal error.
"""

from typing import Any

from services.upload_relay.app.core.schemas import UploadState


class RelayError(Exception):
    """Base exception for all relay errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Any | None = None,
        failed_at: UploadState | None = None,
    ):
        """Initialize the error.

        Args:
            message: Human-readable message returned to the client
            details: Diagnostic payload (upstream errors, response body)
            failed_at: Orchestrator state in which the failure happened
        """
        self.message = message
        self.details = details
        self.failed_at = failed_at
        super().__init__(message)


class UploadValidationError(RelayError):
    """The client sent something the relay will not forward."""

    status_code = 400


class MissingFileError(UploadValidationError):
    """No file part in the request."""

    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message)


class UnsupportedFileTypeError(UploadValidationError):
    """Declared content type and filename extension are both outside the allow-list."""

    def __init__(self, filename: str, content_type: str):
        self.filename = filename
        self.content_type = content_type
        super().__init__("Invalid file type. Only images and design files are allowed.")


class FileTooLargeError(UploadValidationError):
    """Upload exceeds the configured size cap."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"File too large. Maximum size is {max_size // (1024 * 1024)}MB.")


class OriginNotAllowedError(RelayError):
    """Cross-origin request from an origin outside the allow-list."""

    status_code = 403

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__("Not allowed by CORS")


class UpstreamError(RelayError):
    """Failure talking to the platform or to the staged upload target."""

    status_code = 500


class UpstreamTransportError(UpstreamError):
    """Network failure or non-2xx HTTP status from an upstream endpoint."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
    ):
        self.status = status
        self.body = body
        details = {"status": status, "body": body} if status is not None else body
        super().__init__(message, details=details)


class UpstreamDomainError(UpstreamError):
    """GraphQL ``errors`` or ``userErrors`` reported by the platform."""


class ResponseShapeError(UpstreamError):
    """Upstream response is missing a field the relay depends on."""
