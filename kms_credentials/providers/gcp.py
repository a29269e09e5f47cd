"""GCP credential fetcher.

Requests an access token for the instance's default service account from the
Compute Engine metadata server. The host honors GCE_METADATA_HOST (or
GCE_METADATA_IP) so tests and emulators can point it elsewhere.
"""

import json
from typing import Any

from kms_credentials import http
from kms_credentials.config import gce_metadata_base_url, normalize_host
from kms_credentials.errors import (
    MalformedResponseError,
    MissingFieldError,
    UpstreamRejectionError,
)
from kms_credentials.logging import get_logger, log_operation
from kms_credentials.providers.base import CredentialFetcher

logger = get_logger(__name__)

TOKEN_PATH = "/computeMetadata/v1/instance/service-accounts/default/token"
METADATA_FLAVOR_HEADER = "Metadata-Flavor"
METADATA_FLAVOR = "Google"


class GCPCredentialFetcher(CredentialFetcher):
    """Fetch a GCP access token from the instance metadata server."""

    provider = "gcp"

    def __init__(self, host: str | None = None, timeout: float | None = None):
        """
        Args:
            host: Metadata host; read from the environment on every fetch when None
            timeout: Request timeout in seconds
        """
        self.host = host
        self.timeout = timeout

    def token_url(self) -> str:
        """Metadata server token endpoint."""
        if self.host is not None:
            base = normalize_host(self.host)
        else:
            base = gce_metadata_base_url()
        return f"{base}{TOKEN_PATH}"

    @log_operation("GCP metadata token fetch", provider="gcp")
    async def fetch(self) -> dict[str, Any]:
        response = await http.get(
            self.token_url(),
            headers={METADATA_FLAVOR_HEADER: METADATA_FLAVOR},
            timeout=self.timeout,
        )
        return {"accessToken": self._parse(response)}

    def _parse(self, response: http.HttpResponse) -> str:
        status, raw = response.status, response.body

        if status != 200:
            raise UpstreamRejectionError(
                f"Metadata server returned status {status}",
                "gcp",
                status_code=status,
                body=raw,
            )

        # Stubbed responses may carry no headers at all
        if response.headers and response.headers.get(METADATA_FLAVOR_HEADER) != METADATA_FLAVOR:
            raise MalformedResponseError(
                "Invalid response from metadata service: incorrect Metadata-Flavor header",
                "gcp",
                status_code=status,
                body=raw,
            )

        try:
            body = json.loads(raw)
        except (TypeError, ValueError):
            raise MalformedResponseError(
                "Malformed JSON body in GET request",
                "gcp",
                status_code=status,
                body=raw,
            )

        if not isinstance(body, dict) or not body.get("access_token"):
            raise MissingFieldError("access_token", "gcp", status_code=status, body=raw)

        logger.info("GCP access token fetched", expires_in=body.get("expires_in"))
        return body["access_token"]
