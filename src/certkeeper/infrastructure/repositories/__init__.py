"""Abstract interfaces for storage backends."""

from certkeeper.infrastructure.repositories.storage_backend import StorageBackend

__all__ = ["StorageBackend"]
