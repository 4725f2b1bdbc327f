"""
Repository-layer exceptions for file storage flows.
"""

from __future__ import annotations


class StorageRepositoryError(Exception):
    """Base exception for storage repository failures."""


class FileStorageError(StorageRepositoryError):
    """Raised when storing, moving or deleting files fails."""
