"""
Regional AWS client factory.

Backends talk to AWS through clients obtained here, one per
(service, region) pair. Reimports fan out to the region of each
certificate ARN, so a single save may use several regional ACM clients.

boto3 clients are thread-safe and may be called from worker threads,
but creating them is not; clients are created on the event loop thread
and cached.
"""

from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from loguru import logger

if TYPE_CHECKING:
    from certkeeper.config import Settings


class AWSClientFactory:
    """
    Creates and caches boto3 clients per service and region.

    Environment Variables (read by boto3):
    - AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY: optional if using an IAM role
    - AWS_PROFILE: optional named profile
    """

    def __init__(
        self,
        default_region: str = "us-east-1",
        max_attempts: int = 3,
        retry_mode: str = "standard",
        session: boto3.session.Session | None = None,
    ):
        """
        Initialize the client factory.

        Args:
            default_region: Region used when a caller does not name one
            max_attempts: Maximum attempts per API call
            retry_mode: botocore retry mode
            session: boto3 session to create clients from (a new one if None)
        """
        self.default_region = default_region
        self.session = session or boto3.session.Session()
        self.config = BotoConfig(
            retries={"max_attempts": max_attempts, "mode": retry_mode}
        )
        self._clients: dict[tuple[str, str], Any] = {}

        logger.debug(
            f"Initialized AWSClientFactory with default_region={default_region}, "
            f"max_attempts={max_attempts}, retry_mode={retry_mode}"
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AWSClientFactory":
        """
        Create a client factory from Settings.

        Args:
            settings: Application settings

        Returns:
            AWSClientFactory configured from settings
        """
        return cls(
            default_region=settings.aws_region,
            max_attempts=settings.aws_max_attempts,
            retry_mode=settings.aws_retry_mode,
        )

    def client(self, service_name: str, region_name: str | None = None) -> Any:
        """
        Get a client for a service in a region.

        Args:
            service_name: boto3 service name ("acm", "s3", "ssm")
            region_name: Region, or None for the default region

        Returns:
            boto3 client
        """
        region = region_name or self.default_region
        key = (service_name, region)

        if key not in self._clients:
            logger.debug(f"Creating {service_name} client for {region}")
            self._clients[key] = self.session.client(
                service_name, region_name=region, config=self.config
            )

        return self._clients[key]
