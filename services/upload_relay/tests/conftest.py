"""Test fixtures for the upload relay."""

import json
import re
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from services.upload_relay.app.config import Settings
from services.upload_relay.app.main import create_app
from services.upload_relay.app.shopify.client import ShopifyAdminClient

TEST_SHOP = "test-shop.myshopify.com"
TEST_API_VERSION = "2025-10"
TEST_ORIGIN = "https://test-shop.myshopify.com"
STAGING_HOST = "shopify-staged-uploads.storage.googleapis.com"
STAGING_URL = f"https://{STAGING_HOST}/"
RESOURCE_URL = f"https://{STAGING_HOST}/tmp/73592/files/cover.png"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

STAGED_PARAMETERS = [
    {"name": "Content-Type", "value": "image/png"},
    {"name": "success_action_status", "value": "201"},
    {"name": "acl", "value": "private"},
    {"name": "key", "value": "tmp/73592/files/cover.png"},
    {"name": "x-goog-date", "value": "20251019T120000Z"},
    {"name": "x-goog-credential", "value": "merchant-assets@shopify.iam/20251019/auto/storage/goog4_request"},
    {"name": "x-goog-algorithm", "value": "GOOG4-RSA-SHA256"},
    {"name": "x-goog-signature", "value": "5e1f0c9a"},
    {"name": "policy", "value": "eyJjb25kaXRpb25zIjpbXX0="},
]

_FIELD_NAME = re.compile(rb'Content-Disposition: form-data; name="([^"]+)"')


def staged_uploads_response(
    targets: list[dict[str, Any]] | None = None,
    user_errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a ``stagedUploadsCreate`` response body."""
    if targets is None:
        targets = [
            {
                "url": STAGING_URL,
                "resourceUrl": RESOURCE_URL,
                "parameters": STAGED_PARAMETERS,
            }
        ]
    return {
        "data": {
            "stagedUploadsCreate": {
                "stagedTargets": targets,
                "userErrors": user_errors or [],
            }
        }
    }


def file_create_response(
    files: list[dict[str, Any]] | None = None,
    user_errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a ``fileCreate`` response body."""
    if files is None:
        files = [
            {
                "__typename": "GenericFile",
                "id": "gid://shopify/GenericFile/1001",
                "url": "https://cdn.shopify.com/s/files/1/0001/files/cover.png",
            }
        ]
    return {
        "data": {
            "fileCreate": {
                "files": files,
                "userErrors": user_errors or [],
            }
        }
    }


def multipart_field_names(request: httpx.Request) -> list[str]:
    """Field names of a multipart request body, in wire order."""
    return [name.decode() for name in _FIELD_NAME.findall(request.content)]


class ShopifyStub:
    """Stand-in for the Admin GraphQL endpoint and the staged upload host.

    Records every outbound request so tests can assert how many calls were
    made and in which order.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.staged_body: dict[str, Any] = staged_uploads_response()
        self.staged_status = 200
        self.upload_status = 201
        self.upload_body = "<PostResponse><Key>tmp/73592/files/cover.png</Key></PostResponse>"
        self.file_body: dict[str, Any] = file_create_response()
        self.file_status = 200
        self.raise_on: str | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        call = self._classify(request)

        if call == self.raise_on:
            raise httpx.ConnectError("connection refused", request=request)

        if call == "staged_uploads_create":
            return httpx.Response(self.staged_status, json=self.staged_body)
        if call == "staged_upload_post":
            return httpx.Response(self.upload_status, text=self.upload_body)
        if call == "file_create":
            return httpx.Response(self.file_status, json=self.file_body)
        return httpx.Response(404, text="not found")

    @staticmethod
    def _classify(request: httpx.Request) -> str:
        if request.url.host == STAGING_HOST:
            return "staged_upload_post"
        if request.url.host == TEST_SHOP and request.url.path.endswith("/graphql.json"):
            query = json.loads(request.content)["query"]
            if "stagedUploadsCreate" in query:
                return "staged_uploads_create"
            if "fileCreate" in query:
                return "file_create"
        return "unknown"

    @property
    def calls(self) -> list[str]:
        return [self._classify(request) for request in self.requests]

    def request_for(self, call: str) -> httpx.Request:
        return next(r for r in self.requests if self._classify(r) == call)

    def variables_for(self, call: str) -> dict[str, Any]:
        return json.loads(self.request_for(call).content)["variables"]


@pytest.fixture
def settings() -> Settings:
    """Settings for tests; never reads the process environment file."""
    return Settings(
        _env_file=None,
        shopify_shop=TEST_SHOP,
        shopify_access_token="shpat_test_token",
        shopify_api_version=TEST_API_VERSION,
        environment="development",
        log_json=False,
        cors_origins=[TEST_ORIGIN, "http://localhost:9292"],
    )


@pytest.fixture
def shopify_stub() -> ShopifyStub:
    return ShopifyStub()


@pytest_asyncio.fixture
async def mock_http_client(shopify_stub: ShopifyStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Outbound HTTP client routed to the stub."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(shopify_stub.handler)) as client:
        yield client


@pytest.fixture
def shopify_client(settings: Settings, mock_http_client: httpx.AsyncClient) -> ShopifyAdminClient:
    return ShopifyAdminClient(
        shop=settings.shopify_shop,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        http_client=mock_http_client,
    )


@pytest.fixture
def app(settings: Settings, mock_http_client: httpx.AsyncClient):
    return create_app(settings, http_client=mock_http_client)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def png_upload() -> dict[str, tuple[str, bytes, str]]:
    """Multipart ``files`` argument for a small PNG."""
    return {"file": ("cover.png", PNG_BYTES, "image/png")}
