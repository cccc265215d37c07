"""
Amazon S3 storage backend.

Validation resolves the bucket's region so objects are written through a
client in that region. Objects follow the certbot live-directory names:

    {prefix}{domain}/cert.pem
    {prefix}{domain}/chain.pem
    {prefix}{domain}/fullchain.pem
    {prefix}{domain}/privkey.pem

The prefix is used verbatim; include a trailing "/" to get a folder.
All four objects form one bundle: if any write fails the whole save fails.
"""

from typing import Any

from certkeeper.core.exceptions import ConfigurationError, InternalError
from certkeeper.core.logging import logger
from certkeeper.core.regions import region_from_location_constraint
from certkeeper.infrastructure.clients import AWSClientFactory
from certkeeper.infrastructure.concurrency import gather_outcomes, run_blocking
from certkeeper.infrastructure.implementations.aws.errors import (
    AWS_ERRORS,
    require_all,
)
from certkeeper.infrastructure.repositories.storage_backend import StorageBackend
from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import S3StorageResult, StorageResult
from certkeeper.models.storage import S3Storage

CERTIFICATE_FILE = "cert.pem"
CHAIN_FILE = "chain.pem"
FULL_CHAIN_FILE = "fullchain.pem"
PRIVATE_KEY_FILE = "privkey.pem"

PEM_CONTENT_TYPE = "application/x-pem-file"


class AWSS3StorageBackend(StorageBackend[S3Storage]):
    """S3 implementation of StorageBackend."""

    def __init__(self, clients: AWSClientFactory):
        """
        Initialize the S3 backend.

        Args:
            clients: Regional client factory; bucket locations are looked up
                in its default region
        """
        self.clients = clients

    async def validate(self, config: S3Storage) -> S3Storage:
        """
        Check the bucket exists and resolve its region.

        Lookup failures are logged in full but reported only as an invalid
        bucket.

        Args:
            config: S3 configuration

        Returns:
            Configuration with resolved_region set

        Raises:
            ConfigurationError: If the bucket is empty, cannot be located or
                is in an unknown region
        """
        if not config.bucket:
            raise ConfigurationError(
                f"Invalid S3 bucket: {config.bucket!r}",
                field="Bucket",
                value=config.bucket,
            )

        s3 = self.clients.client("s3")

        try:
            response = await run_blocking(s3.get_bucket_location, Bucket=config.bucket)
        except AWS_ERRORS as e:
            logger.error(f"Failed to get location for S3 bucket {config.bucket}: {e}")
            raise ConfigurationError(
                f"Invalid S3 bucket: {config.bucket}",
                field="Bucket",
                value=config.bucket,
            ) from None

        region = region_from_location_constraint(response.get("LocationConstraint"))
        logger.debug(f"S3 bucket {config.bucket} is in {region}")

        return config.model_copy(update={"resolved_region": region})

    def object_key(self, config: S3Storage, domain: str, file_name: str) -> str:
        """Full object key for one certificate component."""
        return f"{config.prefix}{domain}/{file_name}"

    async def save_certificate(
        self, config: S3Storage, material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Upload all four certificate components concurrently.

        Args:
            config: Validated S3 configuration
            material: Certificate and its components

        Returns:
            A single S3StorageResult

        Raises:
            InternalError: If the configuration was not validated
            StorageWriteError: If any object could not be written
        """
        if config.resolved_region is None:
            raise InternalError(f"S3 bucket {config.bucket} was not validated")

        s3 = self.clients.client("s3", config.resolved_region)
        domain = material.primary_domain

        objects = [
            (self.object_key(config, domain, file_name), body)
            for file_name, body in (
                (CERTIFICATE_FILE, material.certificate_pem),
                (CHAIN_FILE, material.chain_pem),
                (FULL_CHAIN_FILE, material.fullchain_pem),
                (PRIVATE_KEY_FILE, material.private_key_pem),
            )
        ]

        outcomes = await gather_outcomes(
            (key, self.put_object(s3, config.bucket, key, body))
            for key, body in objects
        )
        require_all(outcomes, f"S3 objects for {domain} to bucket {config.bucket}")

        certificate, chain, full_chain, private_key = (key for key, _ in objects)
        return [
            S3StorageResult(
                bucket=config.bucket,
                certificate=certificate,
                chain=chain,
                full_chain=full_chain,
                private_key=private_key,
            )
        ]

    async def put_object(self, s3: Any, bucket: str, key: str, body: str) -> str:
        """
        Upload one PEM object with server-side encryption.

        Args:
            s3: S3 client for the bucket's region
            bucket: Bucket name
            key: Object key
            body: PEM text

        Returns:
            S3 URI (s3://bucket/key)
        """
        try:
            await run_blocking(
                s3.put_object,
                Bucket=bucket,
                Key=key,
                Body=body.encode(),
                ContentType=PEM_CONTENT_TYPE,
                ServerSideEncryption="AES256",
            )
        except Exception as e:
            logger.error(f"Failed to upload s3://{bucket}/{key}: {e}")
            raise

        s3_uri = f"s3://{bucket}/{key}"
        logger.info(f"Uploaded {s3_uri}")
        return s3_uri
