"""
app/repositories/category_repository.py

SQLAlchemy persistence for taxonomy categories and their assignments.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.repositories.contracts import CategoryRecord
from db.models.category import Category, ContentCategory

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = decomposed.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_only.lower()).strip("-")
    return slug or "category"


class SqlCategoryRepository:
    """
    Category lookups, on-demand creation and per-axis assignment.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_name(self, axis: str, name: str) -> CategoryRecord | None:
        stmt = select(Category).where(Category.axis == axis, Category.name == name).limit(1)
        with self._session.begin_nested():
            row = self._session.scalars(stmt).first()
        return _to_record(row) if row is not None else None

    def create(
        self,
        axis: str,
        name: str,
        parent: CategoryRecord | None = None,
        meta: dict[str, Any] | None = None,
        slug: str | None = None,
    ) -> CategoryRecord:
        row = Category(
            axis=axis,
            name=name,
            slug=slug or slugify(name),
            parent_id=parent.id if parent is not None else None,
            meta=meta,
        )
        try:
            with self._session.begin_nested():
                self._session.add(row)
                self._session.flush()
        except IntegrityError:
            # Created concurrently by another unit of work.
            existing = self.find_by_name(axis, name)
            if existing is None:
                raise
            return existing

        logger.info("Category created axis=%s name=%r id=%s", axis, name, row.id)
        return _to_record(row)

    def assign(self, entity_id: int, category_id: int, axis: str) -> None:
        """
        Make `category_id` the only category of `entity_id` on `axis`.
        """

        with self._session.begin_nested():
            self._session.execute(
                delete(ContentCategory).where(
                    ContentCategory.content_item_id == entity_id,
                    ContentCategory.axis == axis,
                )
            )
            self._session.add(
                ContentCategory(content_item_id=entity_id, category_id=category_id, axis=axis)
            )
            self._session.flush()

    def categories_for(self, entity_id: int, axis: str | None = None) -> list[CategoryRecord]:
        stmt = (
            select(Category)
            .join(ContentCategory, ContentCategory.category_id == Category.id)
            .where(ContentCategory.content_item_id == entity_id)
            .order_by(Category.axis, Category.name)
        )
        if axis is not None:
            stmt = stmt.where(ContentCategory.axis == axis)
        return [_to_record(row) for row in self._session.scalars(stmt)]


def _to_record(row: Category) -> CategoryRecord:
    return CategoryRecord(
        id=row.id,
        axis=row.axis,
        name=row.name,
        slug=row.slug,
        parent_id=row.parent_id,
        meta=dict(row.meta) if row.meta else None,
    )
