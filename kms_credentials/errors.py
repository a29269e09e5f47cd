"""
Exception classes for KMS credential loading.

Every error carries an ``ErrorKind`` tag so callers can either catch a
specific subclass or ``match err.kind``.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""
    NETWORK_TIMEOUT = "network_timeout"
    NETWORK = "network"
    REQUEST = "request"
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_FIELD = "missing_field"
    FIELD_PARSE = "field_parse"
    UPSTREAM_REJECTION = "upstream_rejection"
    CREDENTIAL_RESOLUTION = "credential_resolution"


class KMSCredentialError(Exception):
    """Base exception for credential loading errors."""

    kind: ErrorKind = ErrorKind.REQUEST

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class NetworkTimeoutError(KMSCredentialError):
    """The HTTP request exceeded its deadline."""

    kind = ErrorKind.NETWORK_TIMEOUT


class NetworkError(KMSCredentialError):
    """The HTTP request failed before a response was received."""

    kind = ErrorKind.NETWORK


class KMSRequestError(KMSCredentialError):
    """A provider credential request failed.

    Attributes:
        provider: KMS provider name (``aws``, ``gcp``, ``azure``)
        status_code: HTTP status of the response, if one was received
        body: Parsed JSON body when available, otherwise the raw text
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        body: Any = None,
        kind: ErrorKind | None = None,
    ):
        super().__init__(message, kind=kind)
        self.provider = provider
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        prefix = _PROVIDER_LABELS.get(self.provider, self.provider)
        return f"[{prefix} KMS] {self.message}"


class MalformedResponseError(KMSRequestError):
    """Response body was absent or not valid JSON."""

    kind = ErrorKind.MALFORMED_RESPONSE


class MissingFieldError(KMSRequestError):
    """A required field is absent from the JSON response."""

    kind = ErrorKind.MISSING_FIELD

    def __init__(self, field: str, provider: str, status_code: int | None = None, body: Any = None):
        super().__init__(
            f"Malformed response body - missing field `{field}`",
            provider,
            status_code=status_code,
            body=body,
        )
        self.field = field


class FieldParseError(KMSRequestError):
    """A response field is present but has the wrong type."""

    kind = ErrorKind.FIELD_PARSE

    def __init__(self, field: str, provider: str, status_code: int | None = None, body: Any = None):
        super().__init__(
            f"Malformed response body - unable to parse int from `{field}` field",
            provider,
            status_code=status_code,
            body=body,
        )
        self.field = field


class UpstreamRejectionError(KMSRequestError):
    """The identity endpoint answered with a non-success status."""

    kind = ErrorKind.UPSTREAM_REJECTION


class CredentialResolutionError(KMSRequestError):
    """The AWS credential chain found no usable credentials."""

    kind = ErrorKind.CREDENTIAL_RESOLUTION


_PROVIDER_LABELS = {
    "aws": "AWS",
    "gcp": "GCP",
    "azure": "Azure",
}
