"""
app/services/taxonomy_resolver.py

Maps free-text classification fields onto canonical categories.

Each kind has a rule table of (axis, term extractor). For every rule the
resolver looks the term up by exact name within the axis, creates it on
first use and assigns it to the entity. Failures are logged per rule and
never propagate: classification is enrichment, not part of the item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Collection

from app.config import TaxonomySettings
from app.domain.content import (
    CallEntity,
    CallStatus,
    ContentEntity,
    ContentKind,
    NewsEntity,
)
from app.repositories.contracts import CategoryRecord, CategoryRepository
from db.models.category import CategoryAxis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TermSpec:
    """
    Category to find or create for one rule.
    """

    name: str
    slug: str | None = None
    parent_name: str | None = None
    meta: dict[str, Any] | None = None


TermExtractor = Callable[[ContentEntity, TaxonomySettings], "TermSpec | None"]


def _research_line_term(entity: ContentEntity, _: TaxonomySettings) -> TermSpec | None:
    research_line = getattr(entity, "research_line", None)
    if not research_line or not str(research_line).strip():
        return None
    return TermSpec(name=str(research_line).strip())


def _call_status_term(entity: ContentEntity, settings: TaxonomySettings) -> TermSpec | None:
    if not isinstance(entity, CallEntity):
        return None
    if entity.call_status == CallStatus.EXPIRED:
        return TermSpec(name=settings.status_expired_term)
    return TermSpec(name=settings.status_open_term)


def _newsletter_term(entity: ContentEntity, settings: TaxonomySettings) -> TermSpec | None:
    if not isinstance(entity, NewsEntity) or not entity.newsletter_number:
        return None
    number = entity.newsletter_number
    return TermSpec(
        name=settings.newsletter_term_format.format(number=number),
        slug=f"boletin-{number}",
        parent_name=settings.newsletter_parent_name,
        meta={"newsletter_number": number},
    )


TAXONOMY_RULES: dict[ContentKind, tuple[tuple[str, TermExtractor], ...]] = {
    ContentKind.PROJECT: ((CategoryAxis.RESEARCH_LINE, _research_line_term),),
    ContentKind.CALL: ((CategoryAxis.STATUS, _call_status_term),),
    ContentKind.NEWS: (
        (CategoryAxis.RESEARCH_LINE, _research_line_term),
        (CategoryAxis.NEWSLETTER_BATCH, _newsletter_term),
    ),
}


class TaxonomyResolver:
    def __init__(self, *, categories: CategoryRepository, settings: TaxonomySettings) -> None:
        self._categories = categories
        self._settings = settings

    def resolve(
        self,
        entity: ContentEntity,
        *,
        axes: Collection[str] | None = None,
    ) -> list[CategoryRecord]:
        """
        Apply the kind's rules to a persisted entity and return what was assigned.

        `axes` restricts resolution to a subset of the kind's rules.
        """

        if entity.id is None:
            logger.warning("Taxonomy skipped for unsaved entity kind=%s title=%r", entity.kind.label, entity.title)
            return []

        assigned: list[CategoryRecord] = []
        for axis, extractor in TAXONOMY_RULES[entity.kind]:
            if axes is not None and axis not in axes:
                continue
            try:
                spec = extractor(entity, self._settings)
                if spec is None:
                    continue
                category = self._find_or_create(axis, spec)
                self._categories.assign(entity.id, category.id, axis)
                assigned.append(category)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Taxonomy assignment failed kind=%s id=%s axis=%s error=%s",
                    entity.kind.label,
                    entity.id,
                    axis,
                    exc,
                )
        return assigned

    def resolve_status(self, call: CallEntity) -> list[CategoryRecord]:
        return self.resolve(call, axes=(CategoryAxis.STATUS,))

    def _find_or_create(self, axis: str, spec: TermSpec) -> CategoryRecord:
        existing = self._categories.find_by_name(axis, spec.name)
        if existing is not None:
            return existing

        parent: CategoryRecord | None = None
        if spec.parent_name:
            parent = self._categories.find_by_name(axis, spec.parent_name)
            if parent is None:
                parent = self._categories.create(axis, spec.parent_name)

        return self._categories.create(axis, spec.name, parent=parent, meta=spec.meta, slug=spec.slug)
