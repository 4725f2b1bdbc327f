"""
tests/test_content_api.py

HTTP-level tests for the content router, mounted on a bare FastAPI app with
SQLite, an in-memory job scheduler and a temporary upload directory.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.dependencies import get_job_scheduler
from app.api.routers.content_ingestion import router
from app.config import ContentIngestionSettings, TaxonomySettings, get_content_ingestion_settings
from app.services.content_ingestion_service import ContentIngestionService, get_content_ingestion_service
from db.session import get_db
from fakes import CALL_HEADERS, FakeJobScheduler, call_row, write_workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture()
def jobs() -> FakeJobScheduler:
    return FakeJobScheduler()


@pytest.fixture()
def client(session, jobs, tmp_path, monkeypatch):
    monkeypatch.setenv("CONTENT_INGEST_UPLOAD_DIR", str(tmp_path / "uploads"))
    get_content_ingestion_settings.cache_clear()

    application = FastAPI()
    application.include_router(router)
    application.dependency_overrides[get_db] = lambda: session
    application.dependency_overrides[get_job_scheduler] = lambda: jobs
    application.dependency_overrides[get_content_ingestion_service] = lambda: ContentIngestionService(
        settings=ContentIngestionSettings(log_validation_errors=False),
        taxonomy_settings=TaxonomySettings(),
    )

    with TestClient(application) as test_client:
        yield test_client
    get_content_ingestion_settings.cache_clear()


def _upload(client: TestClient, path, kind: str = "Calls", **params):
    with path.open("rb") as handle:
        return client.post(
            f"/content/{kind}/upload",
            files={"file": (path.name, handle, XLSX)},
            params=params,
        )


class TestUpload:
    def test_successful_upload(self, client, jobs, tmp_path) -> None:
        rows = [call_row(1, Cierre="2099-12-31"), call_row(2, Cierre="2099-12-31")]
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, rows)

        response = _upload(client, path)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["processed_count"] == 2
        assert body["state"] == "committed"
        assert "content_spreadsheets" in body["saved_file_path"]
        assert len(jobs.jobs) == 2

    def test_spanish_kind_alias(self, client, tmp_path) -> None:
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, [call_row(1)])

        response = _upload(client, path, kind="convocatorias")

        assert response.status_code == 200

    def test_unknown_kind(self, client, tmp_path) -> None:
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, [call_row(1)])

        assert _upload(client, path, kind="Eventos").status_code == 404

    def test_non_xlsx_rejected(self, client) -> None:
        response = client.post(
            "/content/Calls/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400

    def test_no_valid_rows_is_bad_request(self, client, tmp_path) -> None:
        rows = [call_row(1, **{"Título de la convocatoría": ""})]
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, rows)

        response = _upload(client, path)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["message"] == "No valid data found in the spreadsheet."
        assert detail["failed_stage"] == "validating"
        assert detail["warnings"] == ["Row 2: Missing required field 'Título de la convocatoría'."]

    def test_invalid_post_status(self, client, tmp_path) -> None:
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, [call_row(1)])

        assert _upload(client, path, post_status="archived").status_code == 400


class TestGetItem:
    def test_returns_ingested_call(self, client, tmp_path) -> None:
        path = write_workbook(tmp_path / "calls.xlsx", CALL_HEADERS, [call_row(1)])
        item_id = _upload(client, path).json()["processed"][0]["id"]

        response = client.get(f"/content/Calls/{item_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Convocatoria 1"
        assert body["external_id"] == "C-1"
        assert body["fields"]["closing_date"] == "2024-06-30"

    def test_missing_item(self, client) -> None:
        assert client.get("/content/News/999").status_code == 404
