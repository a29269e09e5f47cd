"""Per-provider credential fetchers.

- AWS: botocore credential chain (requires boto3)
- GCP: Compute Engine metadata server
- Azure: Instance Metadata Service with a token cache
"""

from .base import CredentialFetcher
from .aws import AWSCredentialFetcher, HAS_BOTO3
from .gcp import GCPCredentialFetcher
from .azure import (
    AzureCredentialFetcher,
    AzureToken,
    AzureTokenCache,
    fetch_azure_kms_token,
    token_cache,
)

__all__ = [
    "CredentialFetcher",
    "AWSCredentialFetcher",
    "HAS_BOTO3",
    "GCPCredentialFetcher",
    "AzureCredentialFetcher",
    "AzureToken",
    "AzureTokenCache",
    "fetch_azure_kms_token",
    "token_cache",
]
