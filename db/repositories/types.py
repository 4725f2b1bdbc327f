"""
Value objects returned by the file storage backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredFileMetadata:
    """
    Where a media file landed and what was written.

    `storage_path` is relative to the storage root so attachments survive a
    move of the upload directory.
    """

    file_name: str
    storage_path: str
    mime_type: str | None
    file_size_bytes: int
    checksum: str
    stored_at: datetime
