"""Services package."""

from certkeeper.services.certificate_storage import (
    CertificateStorageService,
    parse_storage_configs,
)

__all__ = ["CertificateStorageService", "parse_storage_configs"]
