"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, Request, UploadFile, status

from app.config import get_scheduler_settings
from app.domain.content import ContentKind
from app.scheduler.jobs import APSchedulerJobScheduler

XLSX_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_xlsx_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is an .xlsx workbook by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_xlsx_filename = filename.endswith(".xlsx")
    is_xlsx_content_type = content_type in XLSX_CONTENT_TYPES

    if not is_xlsx_filename and not is_xlsx_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .xlsx files are allowed.",
        )

    return file


def get_content_kind(kind: str) -> ContentKind:
    """
    Resolve the `{kind}` path segment (Projects, Calls, News or the Spanish labels).
    """

    try:
        return ContentKind.from_label(kind)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown content kind: {kind}",
        ) from exc


def get_job_scheduler(request: Request) -> APSchedulerJobScheduler:
    """
    Wrap the scheduler started in the application lifespan.
    """

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduler is not running.",
        )
    return APSchedulerJobScheduler(
        scheduler,
        misfire_grace_seconds=get_scheduler_settings().misfire_grace_seconds,
    )
