"""
Storage dispatcher.

Routes validate and save_certificate calls to the backend registered for
the configuration's variant. Callers only deal with StorageConfig values
and these two operations.

Usage:
    from certkeeper.config import get_settings
    from certkeeper.infrastructure import CertificateStorage

    storage = CertificateStorage.from_settings(get_settings())

    config = await storage.validate(config)
    results = await storage.save_certificate(
        config, domain_names, cert_pem, chain_pem, fullchain_pem, key_pem
    )

Adding a backend means adding a configuration variant, a StorageBackend
implementation and a registry entry in from_settings.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger

from certkeeper.core.exceptions import ConfigurationError
from certkeeper.infrastructure.clients import AWSClientFactory
from certkeeper.infrastructure.repositories import StorageBackend
from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import StorageResult
from certkeeper.models.storage import (
    AcmStorage,
    S3Storage,
    SsmParameterStorage,
    StorageConfig,
)

if TYPE_CHECKING:
    from certkeeper.config import Settings


class CertificateStorage:
    """
    Polymorphic facade over the storage backends.

    Holds a registry mapping each configuration class to its backend.
    """

    def __init__(self, backends: Mapping[type, StorageBackend[Any]]):
        """
        Initialize the dispatcher.

        Args:
            backends: Backend for each configuration class
        """
        self.backends = dict(backends)

        logger.debug(
            "Initialized CertificateStorage with backends: "
            + ", ".join(config_type.__name__ for config_type in self.backends)
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CertificateStorage":
        """
        Create a dispatcher with the AWS backends configured from settings.

        Args:
            settings: Application settings

        Returns:
            CertificateStorage for ACM, S3 and SSM Parameter Store
        """
        from certkeeper.infrastructure.implementations.aws import (
            AWSAcmStorageBackend,
            AWSS3StorageBackend,
            AWSSsmParameterStorageBackend,
        )

        clients = AWSClientFactory.from_settings(settings)

        return cls(
            {
                AcmStorage: AWSAcmStorageBackend(clients),
                S3Storage: AWSS3StorageBackend(clients),
                SsmParameterStorage: AWSSsmParameterStorageBackend(clients),
            }
        )

    def backend_for(self, config: StorageConfig) -> StorageBackend[Any]:
        """
        Get the backend for a configuration.

        Raises:
            ConfigurationError: If no backend handles this configuration type
        """
        backend = self.backends.get(type(config))
        if backend is None:
            raise ConfigurationError(
                f"Unsupported storage type: {type(config).__name__}", field="Type"
            )
        return backend

    async def validate(self, config: StorageConfig) -> StorageConfig:
        """
        Validate a configuration with its backend.

        Args:
            config: Configuration as supplied by the caller

        Returns:
            Validated configuration, to be passed to save_certificate

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        return await self.backend_for(config).validate(config)

    async def save_certificate(
        self,
        config: StorageConfig,
        domain_names: Sequence[str],
        certificate_pem: str,
        chain_pem: str,
        fullchain_pem: str,
        private_key_pem: str,
    ) -> list[StorageResult]:
        """
        Store a certificate with the configuration's backend.

        Args:
            config: Configuration returned by validate
            domain_names: Domains covered by the certificate; the first is
                the primary domain
            certificate_pem: Leaf certificate
            chain_pem: Intermediate chain
            fullchain_pem: Certificate followed by the chain
            private_key_pem: Private key

        Returns:
            One result per write target
        """
        material = CertificateMaterial(
            domain_names=tuple(domain_names),
            certificate_pem=certificate_pem,
            chain_pem=chain_pem,
            fullchain_pem=fullchain_pem,
            private_key_pem=private_key_pem,
        )
        return await self.backend_for(config).save_certificate(config, material)
