"""
KMS Credentials - automatic credential discovery for client-side encryption.

Fills empty ``aws``, ``gcp`` and ``azure`` entries of a KMS provider
configuration from the provider's standard identity source:

- AWS: botocore credential chain (environment, shared files, metadata)
- GCP: Compute Engine metadata server
- Azure: Instance Metadata Service, with a cached access token

Example:
    from kms_credentials import load_credentials

    kms_providers = await load_credentials({"azure": {}, "local": {"key": key}})
"""

from kms_credentials.errors import (
    ErrorKind,
    KMSCredentialError,
    NetworkTimeoutError,
    NetworkError,
    KMSRequestError,
    MalformedResponseError,
    MissingFieldError,
    FieldParseError,
    UpstreamRejectionError,
    CredentialResolutionError,
)
from kms_credentials.loader import (
    CredentialLoader,
    build_loader,
    default_loader,
    is_empty_credentials,
    load_credentials,
    reset_default_loader,
)
from kms_credentials.providers import (
    AWSCredentialFetcher,
    AzureCredentialFetcher,
    AzureToken,
    AzureTokenCache,
    CredentialFetcher,
    GCPCredentialFetcher,
    fetch_azure_kms_token,
    token_cache,
)

__version__ = "0.1.0"

__all__ = [
    # Loader
    "load_credentials",
    "is_empty_credentials",
    "CredentialLoader",
    "build_loader",
    "default_loader",
    "reset_default_loader",
    # Fetchers
    "CredentialFetcher",
    "AWSCredentialFetcher",
    "GCPCredentialFetcher",
    "AzureCredentialFetcher",
    "AzureToken",
    "AzureTokenCache",
    "fetch_azure_kms_token",
    "token_cache",
    # Errors
    "ErrorKind",
    "KMSCredentialError",
    "NetworkTimeoutError",
    "NetworkError",
    "KMSRequestError",
    "MalformedResponseError",
    "MissingFieldError",
    "FieldParseError",
    "UpstreamRejectionError",
    "CredentialResolutionError",
]
