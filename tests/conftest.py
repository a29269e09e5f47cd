"""Pytest fixtures for credential loader tests."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from kms_credentials import http
from kms_credentials.config import get_settings
from kms_credentials.http import HttpResponse
from kms_credentials.loader import reset_default_loader
from kms_credentials.providers.azure import token_cache

# Environment variables that would redirect or disable fetchers
_ISOLATED_ENV = (
    "GCE_METADATA_HOST",
    "GCE_METADATA_IP",
    "KMS_CREDENTIALS_HTTP_TIMEOUT",
    "KMS_CREDENTIALS_AZURE_IMDS_URL",
    "KMS_CREDENTIALS_AZURE_REFRESH_MARGIN_MS",
    "KMS_CREDENTIALS_AWS_ENABLED",
    "KMS_CREDENTIALS_GCP_ENABLED",
    "KMS_CREDENTIALS_LOG_LEVEL",
    "KMS_CREDENTIALS_LOG_JSON",
)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Reset settings, the shared loader and the Azure cache between tests."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    reset_default_loader()
    token_cache.reset_cache()
    yield
    get_settings.cache_clear()
    reset_default_loader()
    token_cache.reset_cache()


@pytest.fixture
def mock_get():
    """Replace the HTTP seam with an AsyncMock.

    Set ``mock_get.return_value`` (or ``side_effect``) in the test.
    """
    with patch("kms_credentials.http.get", new_callable=AsyncMock) as mocked:
        yield mocked


@pytest.fixture
def azure_token_response():
    """A valid IMDS token response."""
    return HttpResponse(
        status=200,
        body=json.dumps({"access_token": "token", "expires_in": "10000"}),
    )


@pytest.fixture
def route_http():
    """Send ``http.get`` calls through an ``httpx.MockTransport``.

    Usage:
        route_http(lambda request: httpx.Response(200, json={...}))
    """
    original_get = http.get
    patches = []

    def install(handler):
        transport = httpx.MockTransport(handler)

        async def routed_get(url, **kwargs):
            return await original_get(url, transport=transport, **kwargs)

        patcher = patch("kms_credentials.http.get", new_callable=AsyncMock, side_effect=routed_get)
        patches.append(patcher)
        return patcher.start()

    yield install

    for patcher in patches:
        patcher.stop()
