"""
Infrastructure layer: AWS clients, concurrency helpers and storage backends.

Backends are selected by configuration variant through CertificateStorage:
- Acm: AWS Certificate Manager
- S3: Amazon S3
- SsmParameter: AWS Systems Manager Parameter Store
"""

from certkeeper.infrastructure.clients import AWSClientFactory
from certkeeper.infrastructure.dispatcher import CertificateStorage

__all__ = ["AWSClientFactory", "CertificateStorage"]
