"""
app/repositories/contracts.py

Collaborator interfaces used by the ingestion pipeline.

The pipeline only depends on these protocols; SQLAlchemy, APScheduler and
HTTP-backed implementations live next to them, and tests supply in-memory
fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from app.domain.content import CallEntity, ContentEntity, ContentKind


@dataclass(frozen=True)
class CategoryRecord:
    """
    One taxonomy category as seen by the pipeline.
    """

    id: int
    axis: str
    name: str
    slug: str
    parent_id: int | None = None
    meta: dict[str, Any] | None = None


class ContentRepository(Protocol):
    """
    Persistence for one content kind, bound to a single unit of work.
    """

    kind: ContentKind

    def find_by_id(self, entity_id: int) -> ContentEntity | None:
        ...

    def find_by_external_id(self, external_id: str) -> ContentEntity | None:
        ...

    def exists_by_title(self, title: str) -> bool:
        ...

    def exists_by_external_id(self, external_id: str) -> bool:
        ...

    def save(self, entity: ContentEntity) -> ContentEntity:
        ...

    def find_open_calls_closed_before(self, day: date) -> list[CallEntity]:
        ...

    def begin_transaction(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class CategoryRepository(Protocol):
    def find_by_name(self, axis: str, name: str) -> CategoryRecord | None:
        ...

    def create(
        self,
        axis: str,
        name: str,
        parent: CategoryRecord | None = None,
        meta: dict[str, Any] | None = None,
        slug: str | None = None,
    ) -> CategoryRecord:
        ...

    def assign(self, entity_id: int, category_id: int, axis: str) -> None:
        ...


class MediaGateway(Protocol):
    def fetch_and_attach(self, url: str, entity_id: int, title: str) -> int:
        """
        Download `url`, store it as an attachment of `entity_id` and return
        the attachment id. Raises on any failure.
        """
        ...

    def set_primary_visual(self, entity_id: int, attachment_id: int) -> None:
        ...


class JobScheduler(Protocol):
    def schedule_once(self, when: datetime, job_name: str, payload: dict[str, Any]) -> str:
        ...

    def is_scheduled(self, job_name: str, payload: dict[str, Any]) -> bool:
        ...


class ArchiveStorage(Protocol):
    def archive_spreadsheet(self, *, source_path: str | Path, kind_label: str, at: datetime) -> str:
        ...
