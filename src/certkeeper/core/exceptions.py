"""
Error hierarchy for certificate storage.

Two tiers:
- ConfigurationError: raised only while parsing or validating backend
  configuration. Fatal to the whole request.
- Operational errors (UnexpectedResponseError, StorageWriteError): raised
  while saving. Scoped to the smallest failing unit.

AWS transport and API failures surface as botocore's ClientError and
BotoCoreError and are wrapped or reported by the backends.
"""

from typing import Any


class CertificateStorageError(Exception):
    """Base class for all certkeeper errors."""


class ConfigurationError(CertificateStorageError):
    """
    A backend configuration is invalid.

    Attributes:
        field: Name of the offending configuration field, when known
        value: The offending value, when it is safe to report
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value


class UnexpectedResponseError(CertificateStorageError):
    """AWS accepted a request but the response lacked the expected payload."""


class StorageWriteError(CertificateStorageError):
    """
    One or more writes of an all-or-nothing backend failed.

    Attributes:
        failures: Mapping of write target (component name) to its exception
    """

    def __init__(self, message: str, failures: dict[str, Exception] | None = None):
        super().__init__(message)
        self.message = message
        self.failures = failures or {}


class InternalError(CertificateStorageError):
    """An internal invariant was violated (programming error)."""


__all__ = [
    "CertificateStorageError",
    "ConfigurationError",
    "InternalError",
    "StorageWriteError",
    "UnexpectedResponseError",
]
