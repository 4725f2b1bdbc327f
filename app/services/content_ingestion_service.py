"""
app/services/content_ingestion_service.py

Service layer for spreadsheet content ingestion.

One run handles one file of one content kind:

    1. parse the first worksheet into raw rows
    2. validate every row; the run fails only when no row is valid
    3. archive the uploaded file
    4. inside one transaction, per valid row: dedup, build, save, classify
    5. commit once
    6. after commit: schedule Call transitions, fetch News images

Per-row failures are recorded and never abort the batch. Only structural
problems (unreadable file, missing columns, archive failure, nothing valid)
and transaction begin/commit failures produce a failed run. Callers always
receive an `IngestionRunResult`, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping

from sqlalchemy.orm import Session

from app.config import (
    ContentIngestionSettings,
    TaxonomySettings,
    get_content_ingestion_settings,
    get_media_http_settings,
    get_taxonomy_settings,
)
from app.connectors.base import HTTPDownloader
from app.connectors.media_library import MediaLibrary
from app.domain.content import (
    ALLOWED_POST_STATUSES,
    CallEntity,
    ContentEntity,
    ContentKind,
    InvalidRow,
    NewsEntity,
    ValidatedRow,
)
from app.domain.ingestion import (
    BatchOutcome,
    FailedRow,
    IngestionRunResult,
    ProcessedItem,
    RunState,
)
from app.parsers.spreadsheet_parser import SpreadsheetParser, SpreadsheetStructureError
from app.repositories.category_repository import SqlCategoryRepository
from app.repositories.content_repository import BatchTransactionError, SqlContentRepository
from app.repositories.contracts import (
    ArchiveStorage,
    CategoryRepository,
    ContentRepository,
    JobScheduler,
    MediaGateway,
)
from app.services.dedup_gate import check_duplicate
from app.services.entity_factory import BuildOptions, build_entity
from app.services.lifecycle_scheduler import CallLifecycleScheduler
from app.services.media_acquisition import MediaAcquisition
from app.services.taxonomy_resolver import TaxonomyResolver
from app.validators.row_validator import RowValidator
from db.repositories.errors import FileStorageError
from db.repositories.storage import LocalFileStorage

logger = logging.getLogger(__name__)

NO_VALID_ROWS_MESSAGE = "No valid data found in the spreadsheet."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class IngestionContext:
    """
    Collaborators for one ingestion run, passed explicitly.
    """

    repositories: Mapping[ContentKind, ContentRepository]
    categories: CategoryRepository
    media: MediaGateway
    scheduler: JobScheduler
    storage: ArchiveStorage
    clock: Callable[[], datetime] = _utc_now

    def repository_for(self, kind: ContentKind) -> ContentRepository:
        return self.repositories[kind]


@dataclass
class _FollowUps:
    calls: list[CallEntity] = field(default_factory=list)
    news_with_images: list[NewsEntity] = field(default_factory=list)

    def collect(self, entity: ContentEntity) -> None:
        if isinstance(entity, CallEntity):
            self.calls.append(entity)
        elif isinstance(entity, NewsEntity) and entity.featured_image_ref:
            self.news_with_images.append(entity)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ContentIngestionService:
    """
    Coordinates parsing, validation, the batch transaction and follow-ups.
    """

    def __init__(
        self,
        *,
        settings: ContentIngestionSettings,
        taxonomy_settings: TaxonomySettings,
        parser: SpreadsheetParser | None = None,
        validator: RowValidator | None = None,
    ) -> None:
        self._settings = settings
        self._taxonomy_settings = taxonomy_settings
        self._parser = parser or SpreadsheetParser()
        self._validator = validator or RowValidator(
            log_validation_errors=settings.log_validation_errors
        )

    def run(
        self,
        *,
        file_path: str | Path,
        kind: ContentKind,
        context: IngestionContext,
        post_status: str | None = None,
        auto_position: bool | None = None,
    ) -> IngestionRunResult:
        resolved_status = (post_status or self._settings.default_post_status).strip().lower()
        if resolved_status not in ALLOWED_POST_STATUSES:
            return IngestionRunResult.failure(f"Invalid post status: {post_status!r}", stage=RunState.PARSING)

        # Parsing
        try:
            parsed = self._parser.parse(file_path=file_path, kind=kind)
        except SpreadsheetStructureError as exc:
            logger.error("Spreadsheet rejected kind=%s file=%s error=%s", kind.label, Path(file_path).name, exc)
            return IngestionRunResult.failure(str(exc), stage=RunState.PARSING)

        # Validating
        report = self._validator.validate(rows=parsed.rows, kind=kind)
        warnings = [format_invalid_row(row) for row in report.invalid_rows]
        if not report.valid_rows:
            logger.error(
                "Spreadsheet has no valid rows kind=%s invalid=%s",
                kind.label,
                len(report.invalid_rows),
            )
            return IngestionRunResult.failure(
                NO_VALID_ROWS_MESSAGE,
                stage=RunState.VALIDATING,
                warnings=warnings,
                total_rows=parsed.total_rows,
                failed_count=len(report.invalid_rows),
            )

        now = context.clock()
        try:
            saved_file_path = context.storage.archive_spreadsheet(
                source_path=file_path,
                kind_label=kind.label,
                at=now,
            )
        except FileStorageError as exc:
            logger.error("Spreadsheet archive failed kind=%s error=%s", kind.label, exc)
            return IngestionRunResult.failure(
                f"Could not store the uploaded file: {exc}",
                stage=RunState.VALIDATING,
                warnings=warnings,
                total_rows=parsed.total_rows,
                failed_count=len(report.invalid_rows),
            )

        options = BuildOptions(
            now=now,
            post_status=resolved_status,
            auto_position=self._settings.auto_position if auto_position is None else auto_position,
            highlight_min_body_chars=self._settings.highlight_min_body_chars,
            grid_max_body_chars=self._settings.grid_max_body_chars,
        )

        # Processing
        repository = context.repository_for(kind)
        try:
            repository.begin_transaction()
        except BatchTransactionError as exc:
            logger.error("Batch transaction could not start kind=%s error=%s", kind.label, exc)
            return IngestionRunResult.failure(
                str(exc),
                stage=RunState.PROCESSING,
                warnings=warnings,
                total_rows=parsed.total_rows,
                failed_count=len(report.invalid_rows),
            )

        follow_ups = _FollowUps()
        try:
            outcome = self._process_rows(
                rows=report.valid_rows,
                kind=kind,
                repository=repository,
                taxonomy=TaxonomyResolver(categories=context.categories, settings=self._taxonomy_settings),
                options=options,
                follow_ups=follow_ups,
            )
            repository.commit()
        except Exception as exc:  # noqa: BLE001
            logger.error("Batch rolled back kind=%s error=%s", kind.label, exc)
            self._safe_rollback(repository, kind)
            return IngestionRunResult.failure(
                f"Batch could not be committed: {exc}",
                stage=RunState.PROCESSING,
                warnings=warnings,
                state=RunState.ROLLED_BACK,
                total_rows=parsed.total_rows,
                failed_count=len(report.invalid_rows),
            )

        self._run_follow_ups(follow_ups=follow_ups, context=context, now=now)

        all_warnings = warnings + outcome.warnings
        failed_count = len(report.invalid_rows) + len(outcome.failed)
        logger.info(
            "Ingestion committed kind=%s total=%s processed=%s skipped=%s failed=%s",
            kind.label,
            parsed.total_rows,
            len(outcome.processed),
            outcome.skipped_count,
            failed_count,
        )
        return IngestionRunResult(
            success=True,
            message=(
                f"Processed {len(outcome.processed)} of {parsed.total_rows} {kind.label} rows "
                f"({outcome.skipped_count} skipped, {failed_count} failed)."
            ),
            state=RunState.COMMITTED,
            processed_count=len(outcome.processed),
            failed_count=failed_count,
            skipped_count=outcome.skipped_count,
            total_rows=parsed.total_rows,
            saved_file_path=saved_file_path,
            warnings=all_warnings,
            processed=outcome.processed,
            failed=outcome.failed,
        )

    # ------------------------------------------------------------------
    # Batch internals
    # ------------------------------------------------------------------

    def _process_rows(
        self,
        *,
        rows: list[ValidatedRow],
        kind: ContentKind,
        repository: ContentRepository,
        taxonomy: TaxonomyResolver,
        options: BuildOptions,
        follow_ups: _FollowUps,
    ) -> BatchOutcome:
        outcome = BatchOutcome()
        skipped = 0

        for row in rows:
            try:
                decision = check_duplicate(row, repository)
                if decision.is_duplicate:
                    skipped += 1
                    outcome.warnings.append(decision.warning_for(row))
                    logger.info(
                        "Duplicate skipped kind=%s row=%s reason=%s",
                        kind.label,
                        row.row_number,
                        decision.reason,
                    )
                    continue

                saved = repository.save(build_entity(row, options))
            except BatchTransactionError:
                raise
            except Exception as exc:  # noqa: BLE001
                outcome.failed.append(FailedRow(row=row.row_number, data=dict(row.raw), error=str(exc)))
                logger.warning(
                    "Row processing failed kind=%s row=%s error=%s",
                    kind.label,
                    row.row_number,
                    exc,
                )
                continue

            outcome.processed.append(
                ProcessedItem(id=saved.id, title=saved.title, external_id=saved.external_id)
            )
            taxonomy.resolve(saved)
            follow_ups.collect(saved)

        return BatchOutcome(
            processed=outcome.processed,
            failed=outcome.failed,
            warnings=outcome.warnings,
            skipped_count=skipped,
        )

    def _run_follow_ups(self, *, follow_ups: _FollowUps, context: IngestionContext, now: datetime) -> None:
        lifecycle = CallLifecycleScheduler(scheduler=context.scheduler)
        for call in follow_ups.calls:
            try:
                lifecycle.schedule_transition(call, now=now)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Call transition scheduling failed call_id=%s error=%s", call.id, exc)

        media = MediaAcquisition(gateway=context.media)
        for news in follow_ups.news_with_images:
            media.acquire(entity_id=news.id, title=news.title, reference=news.featured_image_ref)

    @staticmethod
    def _safe_rollback(repository: ContentRepository, kind: ContentKind) -> None:
        try:
            repository.rollback()
        except BatchTransactionError as exc:
            logger.error("Rollback failed kind=%s error=%s", kind.label, exc)


def format_invalid_row(row: InvalidRow) -> str:
    return f"Row {row.row_number}: {'; '.join(row.reasons)}"


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_ingestion_context(
    *,
    session: Session,
    scheduler: JobScheduler,
    session_factory: Callable[[], Session],
) -> IngestionContext:
    """
    Wire SQLAlchemy, local storage and HTTP collaborators around one session.
    """

    settings = get_content_ingestion_settings()
    storage = LocalFileStorage(settings.upload_storage_dir)
    return IngestionContext(
        repositories={kind: SqlContentRepository(session, kind) for kind in ContentKind},
        categories=SqlCategoryRepository(session),
        media=MediaLibrary(
            session_factory=session_factory,
            storage=storage,
            downloader=HTTPDownloader(http_settings=get_media_http_settings()),
        ),
        scheduler=scheduler,
        storage=storage,
    )


@lru_cache(maxsize=1)
def get_content_ingestion_service() -> ContentIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """
    return ContentIngestionService(
        settings=get_content_ingestion_settings(),
        taxonomy_settings=get_taxonomy_settings(),
    )
