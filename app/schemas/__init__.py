"""
app/schemas package marker.
"""

from app.schemas.content_ingestion import (
    ContentIngestionRunResponse,
    ContentItemResponse,
    FailedRowResponse,
    ProcessedItemResponse,
)

__all__ = [
    "ContentIngestionRunResponse",
    "ContentItemResponse",
    "FailedRowResponse",
    "ProcessedItemResponse",
]
