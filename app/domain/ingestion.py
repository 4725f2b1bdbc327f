"""
app/domain/ingestion.py

Outcome models for one spreadsheet ingestion run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class RunState:
    """
    States of one ingestion run. The intermediate states are reported as
    `IngestionRunResult.failed_stage` when a run stops before committing.
    """

    PARSING = "parsing"
    VALIDATING = "validating"
    PROCESSING = "processing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessedItem:
    id: int
    title: str
    external_id: str | None = None


@dataclass(frozen=True)
class FailedRow:
    """
    One row that passed validation but could not be processed.
    """

    row: int
    data: dict[str, Any]
    error: str


@dataclass(frozen=True)
class BatchOutcome:
    """
    Aggregated per-row outcomes of one committed batch.
    """

    processed: list[ProcessedItem] = field(default_factory=list)
    failed: list[FailedRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    skipped_count: int = 0


@dataclass(frozen=True)
class IngestionRunResult:
    """
    Structured result returned to callers for every run, successful or not.
    """

    success: bool
    message: str
    state: str
    processed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    total_rows: int = 0
    saved_file_path: str | None = None
    warnings: list[str] = field(default_factory=list)
    processed: list[ProcessedItem] = field(default_factory=list)
    failed: list[FailedRow] = field(default_factory=list)
    failed_stage: str | None = None

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        stage: str,
        warnings: list[str] | None = None,
        state: str = RunState.FAILED,
        total_rows: int = 0,
        failed_count: int = 0,
    ) -> "IngestionRunResult":
        return cls(
            success=False,
            message=message,
            state=state,
            failed_stage=stage,
            total_rows=total_rows,
            failed_count=failed_count,
            warnings=list(warnings or []),
        )
