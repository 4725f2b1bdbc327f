"""
app/connectors/media_library.py

Downloads featured images and records them as media attachments.

Runs after the ingestion batch has committed, so it opens its own short
sessions instead of sharing the batch unit of work.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import PurePosixPath
from typing import Callable
from urllib.parse import unquote, urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.connectors.base import DownloadedFile, HTTPDownloader
from app.repositories.content_repository import ContentPersistenceError
from db.models.content_item import ContentItem
from db.models.media_attachment import MediaAttachment
from db.repositories.errors import FileStorageError
from db.repositories.storage import FileStorageBackend

logger = logging.getLogger(__name__)

_FILENAME_PATTERN = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


class MediaAcquisitionError(RuntimeError):
    """
    Raised when a downloaded file cannot be stored or linked.
    """


class MediaLibrary:
    """
    Media gateway backed by HTTP downloads, local storage and the database.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        storage: FileStorageBackend,
        downloader: HTTPDownloader,
    ) -> None:
        self._session_factory = session_factory
        self._storage = storage
        self._downloader = downloader

    def fetch_and_attach(self, url: str, entity_id: int, title: str) -> int:
        downloaded = self._downloader.download(url)
        if not downloaded.content:
            raise MediaAcquisitionError("Downloaded file is empty.")
        if downloaded.content_type and not downloaded.content_type.startswith("image/"):
            raise MediaAcquisitionError(f"Unsupported media type: {downloaded.content_type}")

        file_name = _derive_file_name(downloaded, entity_id)
        try:
            stored = self._storage.save_media(
                owner_id=entity_id,
                file_name=file_name,
                content=downloaded.content,
                content_type=downloaded.content_type,
            )
        except FileStorageError as exc:
            raise MediaAcquisitionError(str(exc)) from exc

        session = self._session_factory()
        try:
            attachment = MediaAttachment(
                content_item_id=entity_id,
                title=title,
                source_url=url,
                file_name=stored.file_name,
                storage_path=stored.storage_path,
                mime_type=stored.mime_type,
                file_size_bytes=stored.file_size_bytes,
                checksum=stored.checksum,
            )
            session.add(attachment)
            session.commit()
            attachment_id = attachment.id
        except SQLAlchemyError as exc:
            session.rollback()
            self._discard(stored.storage_path)
            raise MediaAcquisitionError("Failed to record media attachment.") from exc
        finally:
            session.close()

        logger.info(
            "Media attached entity_id=%s attachment_id=%s bytes=%s",
            entity_id,
            attachment_id,
            stored.file_size_bytes,
        )
        return attachment_id

    def set_primary_visual(self, entity_id: int, attachment_id: int) -> None:
        session = self._session_factory()
        try:
            item = session.get(ContentItem, entity_id)
            if item is None:
                raise ContentPersistenceError(f"Content item {entity_id} does not exist.")
            item.featured_media_id = attachment_id
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise MediaAcquisitionError("Failed to set primary visual.") from exc
        finally:
            session.close()

    def _discard(self, storage_path: str) -> None:
        try:
            self._storage.delete(storage_path=storage_path)
        except FileStorageError as exc:
            logger.warning("Orphaned media file not removed path=%s error=%s", storage_path, exc)


def _derive_file_name(downloaded: DownloadedFile, entity_id: int) -> str:
    name = ""
    if downloaded.content_disposition:
        match = _FILENAME_PATTERN.search(downloaded.content_disposition)
        if match:
            name = unquote(match.group(1)).strip()
    if not name:
        name = PurePosixPath(unquote(urlparse(downloaded.url).path)).name

    stem = PurePosixPath(name).stem if name else ""
    suffix = PurePosixPath(name).suffix.lower() if name else ""
    if not suffix or suffix in {".php", ".aspx", ".html"} or suffix == name:
        guessed = mimetypes.guess_extension(downloaded.content_type or "") or ".jpg"
        suffix = ".jpg" if guessed == ".jpe" else guessed

    safe_stem = re.sub(r"[^A-Za-z0-9._-]+", "-", stem).strip("-.") or f"content-{entity_id}"
    # Drive downloads arrive as ".../uc" with no useful name.
    if safe_stem == "uc":
        safe_stem = f"content-{entity_id}"
    return f"{safe_stem[:100]}{suffix}"
