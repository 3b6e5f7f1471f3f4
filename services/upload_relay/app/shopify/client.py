"""Shopify Admin API client for staged file uploads."""

import json
from typing import Any

import httpx
from pydantic import ValidationError

from services.upload_relay.app.core.exceptions import (
    ResponseShapeError,
    UpstreamDomainError,
    UpstreamTransportError,
)
from services.upload_relay.app.core.schemas import (
    CreatedFile,
    GenericFile,
    IncomingUpload,
    MediaImage,
    StagedTarget,
)
from services.upload_relay.app.shopify.mutations import (
    FILE_CREATE,
    FILE_RESOURCE,
    STAGED_UPLOADS_CREATE,
)
from shared.utils.logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"

# Cap on upstream bodies carried in error details
MAX_ERROR_BODY_CHARS = 2000


def parse_created_file(node: dict[str, Any]) -> CreatedFile:
    """Build the created-file variant from a ``fileCreate`` result node.

    ``__typename`` picks the variant. Without it, an ``image`` key means a
    media image and a ``url`` key a generic file.

    Raises:
        ResponseShapeError: Unknown type, or a node that fits neither variant
    """
    typename = node.get("__typename")
    if typename is None:
        if "image" in node:
            typename = "MediaImage"
        elif "url" in node:
            typename = "GenericFile"

    try:
        if typename == "MediaImage":
            return MediaImage.model_validate(node)
        if typename == "GenericFile":
            return GenericFile.model_validate(node)
    except ValidationError as e:
        raise ResponseShapeError(
            "Unexpected file shape in fileCreate response",
            details={"node": node, "errors": e.errors(include_url=False)},
        ) from e

    raise ResponseShapeError(
        "Could not extract file URL from response",
        details={"node": node},
    )


def file_url(created: CreatedFile) -> str:
    """Public URL of a created file, wherever its variant keeps it.

    Raises:
        ResponseShapeError: The variant carries no URL (still processing)
    """
    url: str | None
    if isinstance(created, GenericFile):
        url = created.url
    elif isinstance(created, MediaImage):
        url = created.image.url if created.image else None
    else:
        raise TypeError(f"Unknown created file variant: {type(created).__name__}")

    if not url:
        raise ResponseShapeError(
            "Could not extract file URL from response",
            details=created.model_dump(by_alias=True),
        )
    return url


def _truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_BODY_CHARS:
        return text
    return text[:MAX_ERROR_BODY_CHARS] + "..."


class ShopifyAdminClient:
    """Client for the three calls of a staged file upload.

    One ``httpx.AsyncClient`` is shared by every request the app serves;
    the access token is sent per call so that it never reaches the staged
    upload host.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize client.

        Args:
            shop: Shop domain, e.g. ``example.myshopify.com``
            access_token: Admin API access token
            api_version: Admin API version, e.g. ``2025-10``
            timeout: Request timeout in seconds
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.shop = shop
        self.api_version = api_version
        self.graphql_url = f"https://{shop}/admin/api/{api_version}/graphql.json"
        self._access_token = access_token
        self.timeout = httpx.Timeout(timeout)
        self._client = http_client

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def execute(
        self,
        query: str,
        variables: dict[str, Any],
        operation: str,
    ) -> dict[str, Any]:
        """Run a GraphQL operation and return its ``data`` payload.

        Args:
            query: GraphQL document
            variables: Operation variables
            operation: Label used in error messages and logs

        Raises:
            UpstreamTransportError: Network failure or non-2xx status
            UpstreamDomainError: Top-level GraphQL ``errors``
            ResponseShapeError: Body is not JSON or has no ``data``
        """
        client = await self.get_client()

        try:
            response = await client.post(
                self.graphql_url,
                json={"query": query, "variables": variables},
                headers={
                    ACCESS_TOKEN_HEADER: self._access_token,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error("graphql_transport_error", operation=operation, error=str(e))
            raise UpstreamTransportError(f"Failed to {operation}: {e}") from e

        logger.debug(
            "graphql_request",
            operation=operation,
            url=self.graphql_url,
            status=response.status_code,
        )

        if not response.is_success:
            body = _truncate(response.text)
            logger.error(
                "graphql_http_error",
                operation=operation,
                status=response.status_code,
                body=body,
            )
            raise UpstreamTransportError(
                f"Failed to {operation}: HTTP {response.status_code}",
                status=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseShapeError(
                f"Failed to {operation}: response was not JSON",
                details=_truncate(response.text),
            ) from e

        errors = payload.get("errors")
        if errors:
            logger.error("graphql_errors", operation=operation, errors=errors)
            raise UpstreamDomainError(
                f"Failed to {operation}: {json.dumps(errors)}",
                details=errors,
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ResponseShapeError(
                f"Failed to {operation}: response had no data",
                details=payload,
            )
        return data

    async def create_staged_upload(self, upload: IncomingUpload) -> StagedTarget:
        """Request exactly one staged upload target for ``upload``.

        Raises:
            UpstreamDomainError: ``userErrors`` reported by the platform
            ResponseShapeError: Zero or several staged targets returned
        """
        variables = {
            "input": [
                {
                    "filename": upload.filename,
                    "mimeType": upload.content_type,
                    "resource": FILE_RESOURCE,
                    "fileSize": str(upload.size),
                }
            ]
        }
        data = await self.execute(STAGED_UPLOADS_CREATE, variables, "create staged upload")

        result = data.get("stagedUploadsCreate") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.error("staged_upload_user_errors", user_errors=user_errors)
            raise UpstreamDomainError(
                f"Staged upload errors: {json.dumps(user_errors)}",
                details=user_errors,
            )

        targets = result.get("stagedTargets") or []
        if len(targets) != 1:
            raise ResponseShapeError(
                f"Expected one staged target, got {len(targets)}",
                details=result,
            )

        try:
            return StagedTarget.model_validate(targets[0])
        except ValidationError as e:
            raise ResponseShapeError(
                "Malformed staged target in response",
                details=targets[0],
            ) from e

    async def upload_to_target(self, target: StagedTarget, upload: IncomingUpload) -> int:
        """POST the file to the staged target and return the response status.

        Form fields go out in the order the platform listed them, with the
        file last; the storage host checks the signature against that order.

        Raises:
            UpstreamTransportError: Network failure or non-2xx status
        """
        client = await self.get_client()

        # Parts without a filename render as plain form fields; a list keeps
        # repeated names and their positions
        parts: list[tuple[str, tuple[Any, ...]]] = [
            (name, (None, value.encode())) for name, value in target.form_fields()
        ]
        parts.append(("file", (upload.filename, upload.content, upload.content_type)))

        try:
            response = await client.post(target.url, files=parts)
        except httpx.HTTPError as e:
            logger.error("staged_upload_transport_error", url=target.url, error=str(e))
            raise UpstreamTransportError(f"Upload failed: {e}") from e

        if not response.is_success:
            body = _truncate(response.text)
            raise UpstreamTransportError(
                f"Upload failed with status {response.status_code}: {body}",
                status=response.status_code,
                body=body,
            )

        return response.status_code

    async def create_file(self, target: StagedTarget, upload: IncomingUpload) -> CreatedFile:
        """Register the staged resource as a permanent file.

        Raises:
            UpstreamDomainError: ``userErrors`` reported by the platform
            ResponseShapeError: No file in the response
        """
        variables = {
            "files": [
                {
                    "alt": upload.filename,
                    "contentType": FILE_RESOURCE,
                    "originalSource": target.resource_url,
                }
            ]
        }
        data = await self.execute(FILE_CREATE, variables, "create file")

        result = data.get("fileCreate") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.error("file_create_user_errors", user_errors=user_errors)
            raise UpstreamDomainError(
                f"File creation errors: {json.dumps(user_errors)}",
                details=user_errors,
            )

        files = result.get("files") or []
        if not files or not isinstance(files[0], dict):
            raise ResponseShapeError("No file returned by fileCreate", details=result)

        return parse_created_file(files[0])
