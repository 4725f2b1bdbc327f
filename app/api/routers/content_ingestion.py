"""
app/api/routers/content_ingestion.py

Spreadsheet content ingestion HTTP endpoints.
"""

from __future__ import annotations

import dataclasses
import logging
import shutil
import tempfile
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_content_kind, get_job_scheduler, get_xlsx_upload
from app.domain.content import ContentKind
from app.domain.ingestion import IngestionRunResult, RunState
from app.repositories.content_repository import SqlContentRepository
from app.scheduler.jobs import APSchedulerJobScheduler
from app.schemas.content_ingestion import (
    ContentIngestionRunResponse,
    ContentItemResponse,
    FailedRowResponse,
    ProcessedItemResponse,
)
from app.services.content_ingestion_service import (
    ContentIngestionService,
    build_ingestion_context,
    get_content_ingestion_service,
)
from db.session import SessionLocal, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["content"])

_ITEM_BASE_FIELDS = {"id", "title", "external_id", "post_status"}


@router.post("/{kind}/upload", response_model=ContentIngestionRunResponse)
def upload_spreadsheet(
    file: UploadFile = Depends(get_xlsx_upload),
    kind: ContentKind = Depends(get_content_kind),
    post_status: str | None = Query(default=None, description="draft, pending, publish or private"),
    auto_position: bool | None = Query(default=None, description="Derive News display position when absent"),
    db: Session = Depends(get_db),
    job_scheduler: APSchedulerJobScheduler = Depends(get_job_scheduler),
    ingestion_service: ContentIngestionService = Depends(get_content_ingestion_service),
) -> ContentIngestionRunResponse:
    """
    Ingest one spreadsheet of Projects, Calls or News.
    """

    with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as handle:
        tmp_path = Path(handle.name)
        try:
            shutil.copyfileobj(file.file, handle)
        finally:
            file.file.close()

    try:
        result = ingestion_service.run(
            file_path=tmp_path,
            kind=kind,
            context=build_ingestion_context(
                session=db,
                scheduler=job_scheduler,
                session_factory=SessionLocal,
            ),
            post_status=post_status,
            auto_position=auto_position,
        )
    finally:
        # Archived files have already been moved away.
        tmp_path.unlink(missing_ok=True)

    response = _to_response(result)
    if not result.success:
        status_code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if result.state == RunState.ROLLED_BACK
            else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(status_code=status_code, detail=response.model_dump())
    return response


@router.get("/{kind}/{item_id}", response_model=ContentItemResponse)
def get_content_item(
    item_id: int,
    kind: ContentKind = Depends(get_content_kind),
    db: Session = Depends(get_db),
) -> ContentItemResponse:
    entity = SqlContentRepository(db, kind).find_by_id(item_id)
    if entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{kind.label} item {item_id} not found.",
        )

    values = dataclasses.asdict(entity)
    return ContentItemResponse(
        id=entity.id,
        kind=kind.label,
        title=entity.title,
        external_id=entity.external_id,
        post_status=entity.post_status,
        fields={name: value for name, value in values.items() if name not in _ITEM_BASE_FIELDS},
    )


def _to_response(result: IngestionRunResult) -> ContentIngestionRunResponse:
    return ContentIngestionRunResponse(
        success=result.success,
        message=result.message,
        state=result.state,
        failed_stage=result.failed_stage,
        processed_count=result.processed_count,
        failed_count=result.failed_count,
        skipped_count=result.skipped_count,
        total_rows=result.total_rows,
        saved_file_path=result.saved_file_path,
        warnings=list(result.warnings),
        processed=[
            ProcessedItemResponse(id=item.id, title=item.title, external_id=item.external_id)
            for item in result.processed
        ],
        failed=[
            FailedRowResponse(row=row.row, data=dict(row.data), error=row.error)
            for row in result.failed
        ],
    )
