"""
Models package.

Backend configurations, certificate material and storage results.
"""

from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import (
    AcmStorageResult,
    S3StorageResult,
    SsmParameterStorageResult,
    StorageError,
    StorageResult,
    dump_results,
    parse_results,
)
from certkeeper.models.storage import (
    AcmStorage,
    S3Storage,
    SsmParameterStorage,
    StorageConfig,
)

__all__ = [
    # Configuration
    "AcmStorage",
    "S3Storage",
    "SsmParameterStorage",
    "StorageConfig",
    # Material
    "CertificateMaterial",
    # Results
    "AcmStorageResult",
    "S3StorageResult",
    "SsmParameterStorageResult",
    "StorageError",
    "StorageResult",
    "dump_results",
    "parse_results",
]
