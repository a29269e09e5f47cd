"""
Single-request HTTP helper used by the metadata endpoint fetchers.

Provider fetchers call ``http.get`` through the module attribute so tests can
replace it with a stub.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from kms_credentials.config import get_settings
from kms_credentials.errors import NetworkError, NetworkTimeoutError
from kms_credentials.logging import get_logger

logger = get_logger(__name__)


@dataclass
class HttpResponse:
    """Status, body and headers of a completed request."""
    status: int
    body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


async def request(
    method: str,
    url: httpx.URL | str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> HttpResponse:
    """
    Perform one HTTP request.

    Args:
        method: HTTP method
        url: Target URL
        headers: Request headers
        timeout: Deadline in seconds (defaults to ``Settings.http_timeout``)
        transport: Alternative httpx transport
        **kwargs: Passed to ``httpx.AsyncClient.request``

    Returns:
        HttpResponse with an empty body mapped to None

    Raises:
        NetworkTimeoutError: If the deadline is exceeded
        NetworkError: On any other transport failure
    """
    if timeout is None:
        timeout = get_settings().http_timeout

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        transport=transport,
    ) as client:
        try:
            response = await client.request(
                method,
                url,
                headers=dict(headers or {}),
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(
                f"request timed out after {timeout:g} seconds"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    logger.debug(
        "HTTP request completed",
        method=method,
        host=response.request.url.host,
        status_code=response.status_code,
    )

    return HttpResponse(
        status=response.status_code,
        body=response.text or None,
        headers=response.headers,
    )


async def get(
    url: httpx.URL | str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpResponse:
    """Perform one HTTP GET."""
    return await request(
        "GET",
        url,
        headers=headers,
        timeout=timeout,
        transport=transport,
    )
