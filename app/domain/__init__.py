"""
app/domain package marker.
"""

from app.domain.content import (
    HEADER_ROW_OFFSET,
    CallEntity,
    CallStatus,
    ContentEntity,
    ContentKind,
    InvalidRow,
    NewsEntity,
    NewsPosition,
    PostStatus,
    ProjectEntity,
    RawRow,
    RowValidationError,
    ValidatedRow,
    ValidationReport,
    compute_call_status,
)
from app.domain.ingestion import BatchOutcome, FailedRow, IngestionRunResult, ProcessedItem, RunState

__all__ = [
    "HEADER_ROW_OFFSET",
    "BatchOutcome",
    "CallEntity",
    "CallStatus",
    "ContentEntity",
    "ContentKind",
    "FailedRow",
    "IngestionRunResult",
    "InvalidRow",
    "NewsEntity",
    "NewsPosition",
    "PostStatus",
    "ProcessedItem",
    "ProjectEntity",
    "RawRow",
    "RowValidationError",
    "RunState",
    "ValidatedRow",
    "ValidationReport",
    "compute_call_status",
]
