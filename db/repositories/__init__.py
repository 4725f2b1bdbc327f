"""
Repository layer exports.
"""

from db.repositories.errors import FileStorageError, StorageRepositoryError
from db.repositories.storage import FileStorageBackend, LocalFileStorage
from db.repositories.types import StoredFileMetadata

__all__ = [
    "StoredFileMetadata",
    "FileStorageBackend",
    "LocalFileStorage",
    "StorageRepositoryError",
    "FileStorageError",
]
