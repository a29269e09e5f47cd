"""Azure credential fetcher with token cache.

Access tokens come from the Azure Instance Metadata Service (IMDS) managed
identity endpoint. Tokens are cached per ``AzureTokenCache`` instance and
refreshed once they are within the refresh margin (one minute by default)
of expiring.

Concurrent callers against an empty or expiring cache may each fetch; the
last completed fetch wins.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import httpx

from kms_credentials import http
from kms_credentials.config import get_settings
from kms_credentials.errors import (
    ErrorKind,
    FieldParseError,
    KMSRequestError,
    MalformedResponseError,
    MissingFieldError,
    NetworkError,
    NetworkTimeoutError,
    UpstreamRejectionError,
)
from kms_credentials.logging import get_logger, log_operation
from kms_credentials.providers.base import CredentialFetcher

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class AzureToken:
    """An Azure access token and its absolute expiry."""
    access_token: str
    expires_on_timestamp: int  # epoch milliseconds

    def remaining_ms(self, now_ms: int | None = None) -> int:
        """Milliseconds until expiry (negative once expired)."""
        return self.expires_on_timestamp - (_now_ms() if now_ms is None else now_ms)


def prepare_request(
    url: httpx.URL | str | None = None,
    headers: Mapping[str, str] | None = None,
) -> tuple[httpx.URL, dict[str, str]]:
    """Build the IMDS token URL and headers.

    The caller's URL is never modified; query parameters are merged into
    a new URL.
    """
    settings = get_settings()
    base = httpx.URL(str(url) if url is not None else settings.azure_imds_url)
    request_url = base.copy_merge_params({
        "api-version": settings.azure_api_version,
        "resource": settings.azure_resource,
    })

    request_headers = dict(headers or {})
    request_headers["Content-Type"] = "application/json"
    request_headers["Metadata"] = "true"
    return request_url, request_headers


def _parse_seconds(value: Any) -> int | None:
    """Integer seconds from a JSON number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_token_response(response: http.HttpResponse) -> AzureToken:
    """Validate an IMDS response and build the token it carries."""
    status, raw = response.status, response.body

    try:
        body = json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedResponseError(
            "Malformed JSON body in GET request",
            "azure",
            status_code=status,
            body=raw,
        )

    if not 200 <= status < 300:
        raise UpstreamRejectionError(
            f"Unable to complete request (status {status})",
            "azure",
            status_code=status,
            body=body,
        )

    if not isinstance(body, dict) or body.get("access_token") in (None, ""):
        raise MissingFieldError("access_token", "azure", status_code=status, body=body)

    expires_in = body.get("expires_in")
    if expires_in in (None, ""):
        raise MissingFieldError("expires_in", "azure", status_code=status, body=body)

    expires_in_seconds = _parse_seconds(expires_in)
    if expires_in_seconds is None:
        raise FieldParseError("expires_in", "azure", status_code=status, body=body)

    return AzureToken(
        access_token=body["access_token"],
        expires_on_timestamp=_now_ms() + expires_in_seconds * 1000,
    )


async def fetch_azure_kms_token(
    url: httpx.URL | str | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> AzureToken:
    """
    Fetch a Key Vault access token from IMDS or a compatible endpoint.

    Args:
        url: Token endpoint (defaults to the IMDS managed identity endpoint)
        headers: Extra request headers; ``Metadata`` and ``Content-Type``
            are always sent
        timeout: Request timeout in seconds

    Returns:
        The fetched token

    Raises:
        KMSRequestError: On any failure, with ``provider == "azure"``
    """
    request_url, request_headers = prepare_request(url, headers)

    try:
        response = await http.get(request_url, headers=request_headers, timeout=timeout)
    except NetworkTimeoutError as e:
        raise KMSRequestError(e.message, "azure", kind=ErrorKind.NETWORK_TIMEOUT) from e
    except NetworkError as e:
        raise KMSRequestError(e.message, "azure", kind=ErrorKind.NETWORK) from e

    return parse_token_response(response)


class AzureTokenCache:
    """
    Holds the most recent Azure token for reuse.

    Example:
        cache = AzureTokenCache()
        token = await cache.get_token()
    """

    def __init__(
        self,
        fetch_token: Callable[[], Awaitable[AzureToken]] | None = None,
        refresh_margin_ms: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            fetch_token: Coroutine function producing a fresh token
            refresh_margin_ms: Refresh tokens expiring within this window
                (defaults to ``Settings.azure_refresh_margin_ms``)
            clock: Current time in epoch milliseconds
        """
        self._fetch_token = fetch_token or fetch_azure_kms_token
        self._refresh_margin_ms = refresh_margin_ms
        self._clock = clock
        self.cached_token: AzureToken | None = None

    @property
    def refresh_margin_ms(self) -> int:
        if self._refresh_margin_ms is None:
            return get_settings().azure_refresh_margin_ms
        return self._refresh_margin_ms

    def needs_refresh(self, token: AzureToken) -> bool:
        """True when the token expires within the refresh margin."""
        return token.remaining_ms(self._clock()) <= self.refresh_margin_ms

    async def get_token(self) -> AzureToken:
        """Return the cached token, fetching a new one if required."""
        if self.cached_token is None or self.needs_refresh(self.cached_token):
            self.cached_token = await self._get_token()
            logger.info(
                "Azure token refreshed",
                expires_in_ms=self.cached_token.remaining_ms(self._clock()),
            )
        return self.cached_token

    def reset_cache(self) -> None:
        """Drop the cached token."""
        self.cached_token = None

    async def _get_token(self) -> AzureToken:
        return await self._fetch_token()


# Shared cache for the default loader
token_cache = AzureTokenCache()


class AzureCredentialFetcher(CredentialFetcher):
    """Fetch Azure credentials through a token cache."""

    provider = "azure"

    def __init__(self, cache: AzureTokenCache | None = None):
        self.cache = cache if cache is not None else token_cache

    @log_operation("Azure token fetch", provider="azure")
    async def fetch(self) -> dict[str, Any]:
        token = await self.cache.get_token()
        return {"accessToken": token.access_token}
