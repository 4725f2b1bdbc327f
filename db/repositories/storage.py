"""
Storage backend abstractions for archived spreadsheets and media files.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import uuid
from datetime import datetime, timezone
from mimetypes import guess_type
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError
from db.repositories.types import StoredFileMetadata

logger = logging.getLogger(__name__)

SPREADSHEET_ARCHIVE_DIR = "content_spreadsheets"
MEDIA_DIR = "media"


class FileStorageBackend(Protocol):
    """
    Abstract storage backend used by ingestion and media acquisition.
    """

    def archive_spreadsheet(self, *, source_path: str | Path, kind_label: str, at: datetime) -> str:
        ...

    def save_media(
        self,
        *,
        owner_id: int,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        ...

    def delete(self, *, storage_path: str) -> None:
        ...


def _sanitize_file_name(file_name: str) -> str:
    safe_name = Path(file_name).name.strip()
    if not safe_name:
        raise FileStorageError("Invalid file name.")
    return safe_name


class LocalFileStorage:
    """
    Local filesystem storage backend rooted at the upload directory.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def archive_spreadsheet(self, *, source_path: str | Path, kind_label: str, at: datetime) -> str:
        """
        Move an ingested spreadsheet under `content_spreadsheets/YYYY/MM/DD/`.

        The file is named `{Kind}_{HH-MM-SS}.xlsx`; a numeric suffix is added
        when a file with that name already exists.
        """

        source = Path(source_path)
        folder = (
            self._root_dir
            / SPREADSHEET_ARCHIVE_DIR
            / at.strftime("%Y")
            / at.strftime("%m")
            / at.strftime("%d")
        )
        stem = f"{kind_label.replace(' ', '')}_{at.strftime('%H-%M-%S')}"
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileStorageError(f"Failed to create archive directory: {folder}") from exc

        target = folder / f"{stem}.xlsx"
        counter = 1
        while target.exists():
            target = folder / f"{stem}_{counter}.xlsx"
            counter += 1

        try:
            shutil.move(str(source), str(target))
        except OSError as exc:
            raise FileStorageError("Failed to move spreadsheet into the archive.") from exc

        logger.info("Spreadsheet archived source=%s target=%s", source.name, target)
        return str(target)

    def save_media(
        self,
        *,
        owner_id: int,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        safe_file_name = _sanitize_file_name(file_name)
        stored_at = datetime.now(timezone.utc)

        relative_path = (
            Path(MEDIA_DIR)
            / stored_at.strftime("%Y")
            / stored_at.strftime("%m")
            / f"{owner_id}_{uuid.uuid4().hex}_{safe_file_name}"
        )
        absolute_path = self._root_dir / relative_path
        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write media file to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        checksum = hashlib.sha256(content).hexdigest()
        mime_type = content_type or guess_type(safe_file_name)[0]

        return StoredFileMetadata(
            file_name=safe_file_name,
            storage_path=relative_path.as_posix(),
            mime_type=mime_type,
            file_size_bytes=len(content),
            checksum=checksum,
            stored_at=stored_at,
        )

    def delete(self, *, storage_path: str) -> None:
        target = self._root_dir / Path(storage_path)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise FileStorageError("Failed to delete file from storage.") from exc
