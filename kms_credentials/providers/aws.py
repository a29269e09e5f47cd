"""AWS credential fetcher.

Resolves credentials through the standard AWS credential chain as implemented
by botocore:

- AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN
- Shared credentials and config files (~/.aws/credentials, ~/.aws/config)
- Web identity / SSO / assume-role profiles
- ECS container credentials and EC2 instance metadata

Requirements:
- boto3 library (pip install kms-credentials[aws]); without it the
  fetcher is not wired into the default loader.
"""

import asyncio
from typing import Any

from kms_credentials.errors import CredentialResolutionError
from kms_credentials.logging import get_logger, log_operation
from kms_credentials.providers.base import CredentialFetcher

logger = get_logger(__name__)

# Optional boto3 import - only required for AWS auto-refresh
try:
    import boto3
    from botocore.exceptions import NoCredentialsError
    HAS_BOTO3 = True
except ImportError:
    HAS_BOTO3 = False
    boto3 = None
    NoCredentialsError = Exception


class AWSCredentialFetcher(CredentialFetcher):
    """Fetch AWS credentials from the botocore provider chain."""

    provider = "aws"

    def __init__(self, profile_name: str | None = None):
        if not HAS_BOTO3:
            raise ImportError(
                "AWS credential refresh requires boto3. "
                "Install with: pip install kms-credentials[aws]"
            )
        self.profile_name = profile_name

    @log_operation("AWS credential resolution", provider="aws")
    async def fetch(self) -> dict[str, Any]:
        # botocore performs blocking file and metadata I/O
        return await asyncio.to_thread(self._resolve)

    def _resolve(self) -> dict[str, Any]:
        try:
            session = boto3.Session(profile_name=self.profile_name)
            credentials = session.get_credentials()
        except NoCredentialsError as e:
            raise CredentialResolutionError(str(e), "aws") from e

        if credentials is None:
            raise CredentialResolutionError(
                "Unable to locate credentials in the AWS provider chain", "aws"
            )

        frozen = credentials.get_frozen_credentials()
        logger.info(
            "AWS credentials resolved",
            method=credentials.method,
            temporary=frozen.token is not None,
        )

        result = {
            "accessKeyId": frozen.access_key,
            "secretAccessKey": frozen.secret_key,
        }
        if frozen.token:
            result["sessionToken"] = frozen.token
        return result
