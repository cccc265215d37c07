"""
Abstract interface for certificate storage backends.

Each backend handles one configuration variant and provides two
operations:
- validate: pre-flight check that normalizes the configuration and caches
  derived facts, returning the updated configuration
- save_certificate: write the certificate material and report one result
  per write target
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import StorageResult

ConfigT = TypeVar("ConfigT")


class StorageBackend(ABC, Generic[ConfigT]):
    """
    Abstract interface for a certificate storage backend.

    Implementations must:
    - raise ConfigurationError from validate only
    - never mutate the configuration they are given
    - return a non-empty result list from save_certificate
    """

    @abstractmethod
    async def validate(self, config: ConfigT) -> ConfigT:
        """
        Validate a configuration before any write is attempted.

        Args:
            config: Configuration as supplied by the caller

        Returns:
            Validated configuration (may carry normalized or derived values)

        Raises:
            ConfigurationError: If the configuration cannot be used
        """
        pass

    @abstractmethod
    async def save_certificate(
        self, config: ConfigT, material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Store a certificate.

        Args:
            config: Configuration returned by validate
            material: Certificate and its components

        Returns:
            One result per write target; failed targets are StorageError
            entries

        Raises:
            CertificateStorageError: If the backend fails as a whole
        """
        pass
