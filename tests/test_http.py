"""Tests for the HTTP request helper."""

import httpx
import pytest

from kms_credentials import http
from kms_credentials.errors import ErrorKind, NetworkError, NetworkTimeoutError


def transport_for(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class TestGet:
    """Tests for http.get()."""

    @pytest.mark.asyncio
    async def test_returns_status_and_body(self):
        transport = transport_for(lambda request: httpx.Response(200, text='{"ok": true}'))

        response = await http.get("http://metadata.test/token", transport=transport)

        assert response.status == 200
        assert response.body == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self):
        transport = transport_for(lambda request: httpx.Response(400))

        response = await http.get("http://metadata.test/token", transport=transport)

        assert response.status == 400
        assert response.body is None

    @pytest.mark.asyncio
    async def test_sends_headers_and_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = request.url
            seen["metadata"] = request.headers.get("Metadata")
            return httpx.Response(200, headers={"Metadata-Flavor": "Google"})

        url = httpx.URL("http://metadata.test/token", params={"resource": "https://vault.azure.net"})
        response = await http.get(url, headers={"Metadata": "true"}, transport=transport_for(handler))

        assert seen["method"] == "GET"
        assert seen["url"].path == "/token"
        assert seen["url"].params["resource"] == "https://vault.azure.net"
        assert seen["metadata"] == "true"
        assert response.headers["metadata-flavor"] == "Google"

    @pytest.mark.asyncio
    async def test_timeout_is_distinct(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkTimeoutError) as exc_info:
            await http.get("http://metadata.test/token", timeout=2, transport=transport_for(handler))

        assert exc_info.value.kind == ErrorKind.NETWORK_TIMEOUT
        assert "2 seconds" in str(exc_info.value)
        assert not isinstance(exc_info.value, NetworkError)

    @pytest.mark.asyncio
    async def test_connect_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(NetworkTimeoutError):
            await http.get("http://metadata.test/token", transport=transport_for(handler))

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            await http.get("http://metadata.test/token", transport=transport_for(handler))

        assert exc_info.value.kind == ErrorKind.NETWORK
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_default_timeout_from_settings(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_HTTP_TIMEOUT", "3.5")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkTimeoutError, match="3.5 seconds"):
            await http.get("http://metadata.test/token", transport=transport_for(handler))


class TestRequest:
    """Tests for http.request()."""

    @pytest.mark.asyncio
    async def test_post(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(201, text="created")

        response = await http.request(
            "POST",
            "http://metadata.test/token",
            content=b"payload",
            transport=transport_for(handler),
        )

        assert seen == {"method": "POST", "body": b"payload"}
        assert response.status == 201
        assert response.body == "created"
