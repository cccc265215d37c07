"""AWS storage backend implementations package."""

from certkeeper.infrastructure.implementations.aws.acm_backend import (
    AWSAcmStorageBackend,
)
from certkeeper.infrastructure.implementations.aws.s3_backend import (
    AWSS3StorageBackend,
)
from certkeeper.infrastructure.implementations.aws.ssm_backend import (
    AWSSsmParameterStorageBackend,
)

__all__ = [
    "AWSAcmStorageBackend",
    "AWSS3StorageBackend",
    "AWSSsmParameterStorageBackend",
]
