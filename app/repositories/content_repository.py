"""
app/repositories/content_repository.py

SQLAlchemy persistence for content entities.

All three kinds share the `content_items` table; kind-specific fields live
in the JSON `attributes` column. Every save and every duplicate lookup runs
inside a SAVEPOINT so a failing row leaves the surrounding batch transaction
usable.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.content import (
    CallEntity,
    CallStatus,
    ContentEntity,
    ContentKind,
    NewsEntity,
    ProjectEntity,
)
from db.models.content_item import ContentItem

logger = logging.getLogger(__name__)

_ENTITY_TYPES: dict[ContentKind, type] = {
    ContentKind.PROJECT: ProjectEntity,
    ContentKind.CALL: CallEntity,
    ContentKind.NEWS: NewsEntity,
}

# Stored as real columns rather than inside `attributes`.
_COLUMN_FIELDS = frozenset({"id", "title", "external_id", "post_status", "call_status", "closing_date"})
_DATE_ATTRIBUTES = frozenset({"start_date", "end_date", "opening_date", "published_on"})


class ContentPersistenceError(RuntimeError):
    """
    Raised when a single entity cannot be stored or loaded.
    """


class BatchTransactionError(RuntimeError):
    """
    Raised when the surrounding unit of work cannot begin or commit.
    """


class SqlContentRepository:
    """
    Content repository for one kind, bound to a caller-owned session.
    """

    def __init__(self, session: Session, kind: ContentKind) -> None:
        self._session = session
        self.kind = kind

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_id(self, entity_id: int) -> ContentEntity | None:
        row = self._session.get(ContentItem, entity_id)
        if row is None or row.kind != self.kind.value:
            return None
        return to_entity(row)

    def find_by_external_id(self, external_id: str) -> ContentEntity | None:
        stmt = (
            select(ContentItem)
            .where(ContentItem.kind == self.kind.value, ContentItem.external_id == external_id)
            .order_by(ContentItem.id)
            .limit(1)
        )
        row = self._first(stmt)
        return to_entity(row) if row is not None else None

    def exists_by_title(self, title: str) -> bool:
        stmt = (
            select(ContentItem.id)
            .where(ContentItem.kind == self.kind.value, ContentItem.title == title)
            .limit(1)
        )
        return self._first(stmt) is not None

    def exists_by_external_id(self, external_id: str) -> bool:
        stmt = (
            select(ContentItem.id)
            .where(ContentItem.kind == self.kind.value, ContentItem.external_id == external_id)
            .limit(1)
        )
        return self._first(stmt) is not None

    def _first(self, stmt: Select) -> Any:
        # A failed SELECT would otherwise abort the whole batch transaction on PostgreSQL.
        try:
            with self._session.begin_nested():
                return self._session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise ContentPersistenceError(f"{self.kind.label} lookup failed.") from exc

    def find_open_calls_closed_before(self, day: date) -> list[CallEntity]:
        stmt = (
            select(ContentItem)
            .where(
                ContentItem.kind == ContentKind.CALL.value,
                ContentItem.call_status == CallStatus.OPEN,
                ContentItem.closing_date < day,
            )
            .order_by(ContentItem.closing_date, ContentItem.id)
        )
        return [to_entity(row) for row in self._session.scalars(stmt)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, entity: ContentEntity) -> ContentEntity:
        if entity.kind is not self.kind:
            raise ContentPersistenceError(
                f"Cannot save {entity.kind.label} entity through {self.kind.label} repository."
            )

        try:
            with self._session.begin_nested():
                if entity.id is None:
                    row = ContentItem(kind=self.kind.value)
                    self._session.add(row)
                else:
                    row = self._session.get(ContentItem, entity.id)
                    if row is None:
                        raise ContentPersistenceError(f"Content item {entity.id} does not exist.")
                _apply_entity(row, entity)
                self._session.flush()
        except SQLAlchemyError as exc:
            raise ContentPersistenceError(f"Failed to save {self.kind.label} '{entity.title}'.") from exc

        logger.debug("Content saved kind=%s id=%s title=%r", self.kind.label, row.id, entity.title)
        return dataclasses.replace(entity, id=row.id)

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        try:
            if not self._session.in_transaction():
                self._session.begin()
        except SQLAlchemyError as exc:
            raise BatchTransactionError("Failed to begin transaction.") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            raise BatchTransactionError("Failed to commit transaction.") from exc

    def rollback(self) -> None:
        try:
            self._session.rollback()
        except SQLAlchemyError as exc:
            raise BatchTransactionError("Failed to roll back transaction.") from exc


# ---------------------------------------------------------------------------
# Row <-> entity mapping
# ---------------------------------------------------------------------------


def _apply_entity(row: ContentItem, entity: ContentEntity) -> None:
    row.title = entity.title
    row.external_id = entity.external_id
    row.post_status = entity.post_status
    if isinstance(entity, CallEntity):
        row.call_status = entity.call_status
        row.closing_date = entity.closing_date
    row.attributes = _to_attributes(entity)


def _to_attributes(entity: ContentEntity) -> dict[str, Any]:
    attributes: dict[str, Any] = {}
    for field in dataclasses.fields(entity):
        if field.name in _COLUMN_FIELDS:
            continue
        value = getattr(entity, field.name)
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        attributes[field.name] = value
    return attributes


def to_entity(row: ContentItem) -> ContentEntity:
    """
    Rebuild a domain entity from its stored row.
    """

    kind = ContentKind(row.kind)
    entity_type = _ENTITY_TYPES[kind]
    known = {field.name for field in dataclasses.fields(entity_type)}

    values: dict[str, Any] = {
        "id": row.id,
        "title": row.title,
        "external_id": row.external_id,
        "post_status": row.post_status,
    }
    for name, value in (row.attributes or {}).items():
        if name not in known or name in _COLUMN_FIELDS:
            continue
        if name in _DATE_ATTRIBUTES and isinstance(value, str):
            value = date.fromisoformat(value)
        elif name == "bullets" and isinstance(value, list):
            value = tuple(value)
        values[name] = value

    if kind is ContentKind.CALL:
        values["call_status"] = row.call_status or CallStatus.OPEN
        values["closing_date"] = row.closing_date

    return entity_type(**values)
