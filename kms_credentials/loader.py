"""KMS provider credential loader.

Fills in empty provider entries of a KMS provider configuration with freshly
fetched credentials.
"""

import asyncio
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from kms_credentials.config import Settings, get_settings
from kms_credentials.logging import get_logger
from kms_credentials.providers import aws as aws_provider
from kms_credentials.providers.azure import AzureCredentialFetcher, AzureTokenCache
from kms_credentials.providers.base import CredentialFetcher
from kms_credentials.providers.gcp import GCPCredentialFetcher

logger = get_logger(__name__)

# Provider names that support automatic refresh
REFRESHABLE_PROVIDERS = ("aws", "gcp", "azure")


def is_empty_credentials(provider_name: str, kms_providers: Mapping[str, Any]) -> bool:
    """Check whether a provider entry asks for automatic refresh.

    Only a mapping with no keys qualifies. A missing entry, None, non-mapping
    values and populated mappings are all treated as an explicit choice by
    the caller.
    """
    credentials = kms_providers.get(provider_name)
    return isinstance(credentials, Mapping) and len(credentials) == 0


class CredentialLoader:
    """
    Refreshes empty provider entries using registered fetchers.

    Example:
        loader = CredentialLoader()
        loader.register_fetcher(AzureCredentialFetcher())
        kms_providers = await loader.load({"azure": {}})
    """

    def __init__(self, fetchers: list[CredentialFetcher] | None = None):
        self._fetchers: dict[str, CredentialFetcher] = {}
        for fetcher in fetchers or []:
            self.register_fetcher(fetcher)

    def register_fetcher(self, fetcher: CredentialFetcher) -> None:
        """Register (or replace) the fetcher for ``fetcher.provider``.

        Raises:
            ValueError: If the provider does not support automatic refresh
        """
        if fetcher.provider not in REFRESHABLE_PROVIDERS:
            raise ValueError(
                f"Provider '{fetcher.provider}' does not support automatic refresh. "
                f"Supported: {', '.join(REFRESHABLE_PROVIDERS)}"
            )
        self._fetchers[fetcher.provider] = fetcher
        logger.debug(f"Registered credential fetcher: {fetcher.provider}")

    @property
    def providers(self) -> list[str]:
        """Provider names with a registered fetcher."""
        return list(self._fetchers)

    async def load(self, kms_providers: Mapping[str, Any]) -> dict[str, Any]:
        """
        Refresh every empty provider entry that has a fetcher.

        Fetches run concurrently; the first failure is raised and no partial
        result is returned.

        Args:
            kms_providers: Provider name to credential record

        Returns:
            A new dict with refreshed entries replaced

        Raises:
            KMSCredentialError: If any fetch fails
        """
        pending = [
            name
            for name in REFRESHABLE_PROVIDERS
            if name in self._fetchers and is_empty_credentials(name, kms_providers)
        ]

        result = dict(kms_providers)
        if not pending:
            return result

        logger.info("Refreshing KMS credentials", providers=",".join(pending))
        fetched = await asyncio.gather(
            *(self._fetchers[name].fetch() for name in pending)
        )
        for name, credentials in zip(pending, fetched):
            result[name] = credentials
        return result


def build_loader(
    settings: Settings | None = None,
    azure_cache: AzureTokenCache | None = None,
) -> CredentialLoader:
    """Build a loader wired from settings and installed libraries.

    AWS is wired only when boto3 is importable and ``aws_enabled`` is set;
    GCP only when ``gcp_enabled`` is set. Azure is always wired.
    """
    settings = settings or get_settings()
    loader = CredentialLoader()

    if settings.aws_enabled and aws_provider.HAS_BOTO3:
        loader.register_fetcher(aws_provider.AWSCredentialFetcher())
    elif settings.aws_enabled:
        logger.debug("boto3 not installed; AWS credentials will not be refreshed")

    if settings.gcp_enabled:
        loader.register_fetcher(GCPCredentialFetcher())

    loader.register_fetcher(AzureCredentialFetcher(azure_cache))
    return loader


@lru_cache(maxsize=1)
def default_loader() -> CredentialLoader:
    """Get the shared loader, built on first use."""
    return build_loader()


def reset_default_loader() -> None:
    """Reset the shared loader.

    Useful for testing or reconfiguration.
    """
    default_loader.cache_clear()


async def load_credentials(
    kms_providers: Mapping[str, Any],
    loader: CredentialLoader | None = None,
) -> dict[str, Any]:
    """Fill empty ``aws``, ``gcp`` and ``azure`` entries with fresh credentials.

    Args:
        kms_providers: Provider name to credential record
        loader: Loader to use instead of the shared default

    Returns:
        A new dict; untouched entries keep their original values
    """
    return await (loader or default_loader()).load(kms_providers)
