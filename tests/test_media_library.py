"""
tests/test_media_library.py

Tests for the HTTP downloader and the database-backed media gateway.

HTTP is stubbed with a minimal requests-like session; storage is a real
LocalFileStorage under `tmp_path` and the database is in-memory SQLite.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import requests

from app.config import MediaHTTPSettings
from app.connectors import base as connectors_base
from app.connectors.base import DownloadedFile, HTTPDownloader, MediaRequestError
from app.connectors.media_library import MediaAcquisitionError, MediaLibrary, _derive_file_name
from app.domain.content import ContentKind, NewsEntity
from app.repositories.content_repository import SqlContentRepository
from db.models.content_item import ContentItem
from db.models.media_attachment import MediaAttachment
from db.repositories.storage import LocalFileStorage


class _FakeResponse:
    def __init__(self, status_code: int, body: bytes = b"", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self.headers = headers or {}
        self.url = "https://cdn.example.org/final.jpg"
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}", response=self)

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class _FakeSession:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class _StaticDownloader:
    def __init__(self, downloaded: DownloadedFile) -> None:
        self._downloaded = downloaded

    def download(self, url: str) -> DownloadedFile:
        return self._downloaded


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch) -> None:
    monkeypatch.setattr(connectors_base.time, "sleep", lambda _seconds: None)


def _settings(**overrides) -> MediaHTTPSettings:
    return MediaHTTPSettings(**{"max_retries": 2, **overrides})


# ---------------------------------------------------------------------------
# HTTPDownloader
# ---------------------------------------------------------------------------


class TestHTTPDownloader:
    def test_retries_transient_status_then_succeeds(self) -> None:
        session = _FakeSession(
            [
                _FakeResponse(503),
                requests.Timeout("slow"),
                _FakeResponse(200, b"img", {"Content-Type": "image/jpeg; charset=binary"}),
            ]
        )

        downloaded = HTTPDownloader(http_settings=_settings(), session=session).download("https://x/a.jpg")

        assert session.calls == 3
        assert downloaded.content == b"img"
        assert downloaded.content_type == "image/jpeg"

    def test_non_retryable_status_fails_fast(self) -> None:
        session = _FakeSession([_FakeResponse(404)])

        with pytest.raises(MediaRequestError):
            HTTPDownloader(http_settings=_settings(), session=session).download("https://x/a.jpg")
        assert session.calls == 1

    def test_retries_exhausted(self) -> None:
        session = _FakeSession([requests.ConnectionError("down")] * 3)

        with pytest.raises(MediaRequestError, match="after retries"):
            HTTPDownloader(http_settings=_settings(), session=session).download("https://x/a.jpg")
        assert session.calls == 3

    def test_size_cap(self) -> None:
        session = _FakeSession([_FakeResponse(200, b"x" * 2048)])

        with pytest.raises(MediaRequestError, match="exceeds"):
            HTTPDownloader(http_settings=_settings(max_bytes=1024), session=session).download("https://x/a.jpg")

    def test_slow_body_exceeds_total_read_deadline(self) -> None:
        response = _FakeResponse(200, b"x" * (3 * 64 * 1024), {"Content-Type": "image/jpeg"})
        ticks = iter([0.0, 1.0, 20.0, 40.0])
        downloader = HTTPDownloader(
            http_settings=_settings(timeout_seconds=15.0),
            session=_FakeSession([response]),
            clock=lambda: next(ticks),
        )

        with pytest.raises(MediaRequestError, match="within 15.0s"):
            downloader.download("https://x/a.jpg")
        assert response.closed


# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------


class TestDeriveFileName:
    def test_content_disposition_wins(self) -> None:
        downloaded = DownloadedFile(
            url="https://drive.google.com/uc",
            content=b"x",
            content_type="image/png",
            content_disposition='attachment; filename="foto portada.png"',
        )
        assert _derive_file_name(downloaded, 4) == "foto-portada.png"

    def test_drive_download_without_name(self) -> None:
        downloaded = DownloadedFile(url="https://drive.google.com/uc", content=b"x", content_type="image/png")
        assert _derive_file_name(downloaded, 4) == "content-4.png"


# ---------------------------------------------------------------------------
# MediaLibrary
# ---------------------------------------------------------------------------


@pytest.fixture()
def news_id(session) -> int:
    saved = SqlContentRepository(session, ContentKind.NEWS).save(NewsEntity(title="Noticia", content="Cuerpo"))
    session.commit()
    return saved.id


class TestMediaLibrary:
    def test_attach_and_set_primary_visual(self, session_factory, news_id, tmp_path) -> None:
        storage = LocalFileStorage(tmp_path)
        downloaded = DownloadedFile(url="https://cdn.example.org/foto.jpg", content=b"jpeg", content_type="image/jpeg")
        library = MediaLibrary(
            session_factory=session_factory,
            storage=storage,
            downloader=_StaticDownloader(downloaded),
        )

        attachment_id = library.fetch_and_attach("https://cdn.example.org/foto.jpg", news_id, "Noticia")
        library.set_primary_visual(news_id, attachment_id)

        with session_factory() as check:
            attachment = check.get(MediaAttachment, attachment_id)
            assert attachment.content_item_id == news_id
            assert attachment.file_size_bytes == 4
            assert (Path(tmp_path) / attachment.storage_path).read_bytes() == b"jpeg"
            assert check.get(ContentItem, news_id).featured_media_id == attachment_id

    def test_non_image_rejected(self, session_factory, news_id, tmp_path) -> None:
        downloaded = DownloadedFile(url="https://x/page", content=b"<html>", content_type="text/html")
        library = MediaLibrary(
            session_factory=session_factory,
            storage=LocalFileStorage(tmp_path),
            downloader=_StaticDownloader(downloaded),
        )

        with pytest.raises(MediaAcquisitionError):
            library.fetch_and_attach("https://x/page", news_id, "Noticia")

    def test_empty_body_rejected(self, session_factory, news_id, tmp_path) -> None:
        downloaded = DownloadedFile(url="https://x/a.jpg", content=b"", content_type="image/jpeg")
        library = MediaLibrary(
            session_factory=session_factory,
            storage=LocalFileStorage(tmp_path),
            downloader=_StaticDownloader(downloaded),
        )

        with pytest.raises(MediaAcquisitionError, match="empty"):
            library.fetch_and_attach("https://x/a.jpg", news_id, "Noticia")


def test_archive_name_collision(tmp_path) -> None:
    storage = LocalFileStorage(tmp_path / "uploads")
    at = datetime(2024, 6, 15, 8, 5, 9)
    first = tmp_path / "a.xlsx"
    second = tmp_path / "b.xlsx"
    first.write_bytes(b"1")
    second.write_bytes(b"2")

    path_one = storage.archive_spreadsheet(source_path=first, kind_label="News", at=at)
    path_two = storage.archive_spreadsheet(source_path=second, kind_label="News", at=at)

    assert Path(path_one).name == "News_08-05-09.xlsx"
    assert Path(path_two).name == "News_08-05-09_1.xlsx"
    assert Path(path_two).parent == tmp_path / "uploads" / "content_spreadsheets" / "2024" / "06" / "15"
