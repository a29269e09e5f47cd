"""Base credential fetcher interface.

Every provider strategy implements this interface so the loader can treat
AWS, GCP and Azure uniformly.
"""

from abc import ABC, abstractmethod
from typing import Any


class CredentialFetcher(ABC):
    """Abstract base class for provider credential fetchers."""

    #: Key of the provider entry this fetcher populates
    provider: str = ""

    @abstractmethod
    async def fetch(self) -> dict[str, Any]:
        """Fetch fresh credentials.

        Returns:
            The normalized credential record for ``provider``

        Raises:
            KMSCredentialError: If credentials cannot be obtained
        """
        pass
