"""
Multi-backend certificate storage service.

A storage request names one or more backends. The service validates every
backend first (any configuration error rejects the whole request), then
saves to all backends concurrently and reports one flat list of results.

Backends that fail as a whole (SSM Parameter Store and S3 are
all-or-nothing) are reported as a single StorageError entry, so the other
backends of the same request still report where the certificate went.
"""

import uuid
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from certkeeper.core.exceptions import ConfigurationError
from certkeeper.core.logging import logger
from certkeeper.core.trace_context import request_id_context
from certkeeper.infrastructure.concurrency import gather_outcomes
from certkeeper.infrastructure.dispatcher import CertificateStorage
from certkeeper.infrastructure.implementations.aws.errors import OPERATIONAL_ERRORS
from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import StorageError, StorageResult
from certkeeper.models.storage import StorageConfig

_configs_adapter: TypeAdapter[list[StorageConfig]] = TypeAdapter(list[StorageConfig])


def parse_storage_configs(raw: Sequence[dict[str, Any]]) -> list[StorageConfig]:
    """
    Parse backend configurations from their JSON representation.

    Args:
        raw: JSON objects tagged by "Type"

    Returns:
        Storage configurations

    Raises:
        ConfigurationError: If any configuration is malformed
    """
    try:
        return _configs_adapter.validate_python(list(raw))
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid storage configuration: {errors}") from e


class CertificateStorageService:
    """Stores one certificate into every configured backend."""

    def __init__(self, storage: CertificateStorage):
        """
        Initialize the service.

        Args:
            storage: Dispatcher used for every backend
        """
        self.storage = storage

    async def validate_all(
        self, configs: Sequence[StorageConfig]
    ) -> list[StorageConfig]:
        """
        Validate every configuration, in order.

        Args:
            configs: Configurations as supplied by the caller

        Returns:
            Validated configurations

        Raises:
            ConfigurationError: On the first invalid configuration
        """
        validated = []
        for config in configs:
            try:
                validated.append(await self.storage.validate(config))
            except ConfigurationError as e:
                logger.error(f"Invalid {config.type} storage configuration: {e}")
                raise
        return validated

    async def store(
        self,
        configs: Sequence[StorageConfig],
        material: CertificateMaterial,
        request_id: str | None = None,
    ) -> list[StorageResult]:
        """
        Validate every backend, then store the certificate in all of them.

        Args:
            configs: Backend configurations
            material: Certificate and its components
            request_id: Correlation id for log records (generated if None)

        Returns:
            Results of all backends, flattened in configuration order

        Raises:
            ConfigurationError: If any configuration is invalid (nothing is
                written)
        """
        token = request_id_context.set(request_id or uuid.uuid4().hex)
        try:
            if not configs:
                raise ConfigurationError("No storage configured", field="Storage")

            validated = await self.validate_all(configs)
            logger.info(
                f"Storing certificate for {material.primary_domain} "
                f"in {len(validated)} backend(s)"
            )

            outcomes = await gather_outcomes(
                (
                    config.type,
                    self.storage.save_certificate(
                        config,
                        material.domain_names,
                        material.certificate_pem,
                        material.chain_pem,
                        material.fullchain_pem,
                        material.private_key_pem,
                    ),
                )
                for config in validated
            )

            results: list[StorageResult] = []
            for storage_type, outcome in outcomes:
                if isinstance(outcome, OPERATIONAL_ERRORS):
                    message = (
                        f"Failed to store certificate in {storage_type}: {outcome}"
                    )
                    logger.error(message)
                    results.append(StorageError(message=message))
                elif isinstance(outcome, Exception):
                    raise outcome
                else:
                    results.extend(outcome)

            n_failed = sum(isinstance(result, StorageError) for result in results)
            logger.info(
                f"Stored certificate for {material.primary_domain}: "
                f"{len(results) - n_failed} succeeded, {n_failed} failed"
            )
            return results
        finally:
            request_id_context.reset(token)
