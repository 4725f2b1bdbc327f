"""
app/schemas/content_ingestion.py

Response schemas for content ingestion endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProcessedItemResponse(BaseModel):
    """
    One item created by an ingestion run.
    """

    id: int = Field(..., ge=1)
    title: str
    external_id: str | None = None


class FailedRowResponse(BaseModel):
    """
    One valid row that could not be processed.
    """

    row: int = Field(..., ge=1)
    data: dict[str, str] = Field(default_factory=dict)
    error: str


class ContentIngestionRunResponse(BaseModel):
    """
    API response model for one spreadsheet ingestion run.
    """

    success: bool
    message: str
    state: str
    processed_count: int = Field(0, ge=0)
    failed_count: int = Field(0, ge=0)
    skipped_count: int = Field(0, ge=0)
    total_rows: int = Field(0, ge=0)
    saved_file_path: str | None = None
    warnings: list[str] = Field(default_factory=list)
    processed: list[ProcessedItemResponse] = Field(default_factory=list)
    failed: list[FailedRowResponse] = Field(default_factory=list)
    failed_stage: str | None = None


class ContentItemResponse(BaseModel):
    """
    A stored content item with its kind-specific fields.
    """

    id: int
    kind: str
    title: str
    external_id: str | None = None
    post_status: str
    fields: dict[str, Any] = Field(default_factory=dict)
