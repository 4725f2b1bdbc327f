"""
app/services/entity_factory.py

Builds unsaved content entities from validated rows.

One builder per kind is registered in `_BUILDERS`; `build_entity` is the only
dispatch point. Builders enforce cross-field rules that single-column
validation cannot see (date ordering) and fill computed fields such as a
Call's lifecycle status and a News item's display position.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

from app.domain.content import (
    CallEntity,
    ContentEntity,
    ContentKind,
    NewsEntity,
    NewsPosition,
    PostStatus,
    ProjectEntity,
    ValidatedRow,
    compute_call_status,
)

_BULLET_MARKER = re.compile(r"^\s*(?:[-*•●▪]|\d+[.)])\s*")


class EntityBuildError(ValueError):
    """
    Raised when a validated row violates a cross-field rule.
    """


@dataclass(frozen=True)
class BuildOptions:
    """
    Per-run knobs applied by every builder.
    """

    now: datetime
    post_status: str = PostStatus.PENDING
    auto_position: bool = False
    highlight_min_body_chars: int = 500
    grid_max_body_chars: int = 200


def infer_news_position(
    *,
    content: str,
    bullets: tuple[str, ...],
    has_image: bool,
    highlight_min_body_chars: int = 500,
    grid_max_body_chars: int = 200,
) -> str:
    body_length = len(content)
    if has_image and body_length > highlight_min_body_chars:
        return NewsPosition.HIGHLIGHT
    if bullets or body_length < grid_max_body_chars:
        return NewsPosition.GRID
    return NewsPosition.NORMAL


def split_bullets(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    items = (_BULLET_MARKER.sub("", line).strip() for line in str(raw).splitlines())
    return tuple(item for item in items if item)


def _required_date(fields: dict[str, Any], name: str) -> date:
    value = fields.get(name)
    if not isinstance(value, date):
        raise EntityBuildError(f"Field '{name}' must be a date.")
    return value


def _build_project(row: ValidatedRow, options: BuildOptions) -> ProjectEntity:
    fields = row.fields
    start_date = _required_date(fields, "start_date")
    end_date = _required_date(fields, "end_date")
    if end_date < start_date:
        raise EntityBuildError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}."
        )

    return ProjectEntity(
        title=row.title,
        objective=fields["objective"],
        research_line=fields["research_line"],
        start_date=start_date,
        end_date=end_date,
        author_name=fields.get("author_name") or "",
        author_email=fields.get("author_email") or "",
        university=fields.get("university") or "",
        country=fields.get("country") or "",
        knowledge_area=fields.get("knowledge_area") or "",
        summary=fields.get("summary"),
        website_url=fields.get("website_url"),
        sdg=fields.get("sdg"),
        expected_results=fields.get("expected_results"),
        problem_statement=fields.get("problem_statement"),
        target_audience=fields.get("target_audience"),
        external_id=row.external_id,
        post_status=options.post_status,
    )


def _build_call(row: ValidatedRow, options: BuildOptions) -> CallEntity:
    fields = row.fields
    opening_date = _required_date(fields, "opening_date")
    closing_date = _required_date(fields, "closing_date")
    if closing_date < opening_date:
        raise EntityBuildError(
            f"Closing date {closing_date.isoformat()} is before opening date {opening_date.isoformat()}."
        )

    return CallEntity(
        title=row.title,
        opening_date=opening_date,
        closing_date=closing_date,
        contact=fields["contact"],
        description=fields.get("description") or "",
        publication_link=fields.get("publication_link"),
        call_status=compute_call_status(closing_date, options.now),
        external_id=row.external_id,
        post_status=options.post_status,
    )


def _build_news(row: ValidatedRow, options: BuildOptions) -> NewsEntity:
    fields = row.fields
    content = fields["content"]
    bullets = split_bullets(fields.get("bullets"))
    image_ref = fields.get("featured_image_ref")

    position = fields.get("position")
    if not position and options.auto_position:
        position = infer_news_position(
            content=content,
            bullets=bullets,
            has_image=bool(image_ref),
            highlight_min_body_chars=options.highlight_min_body_chars,
            grid_max_body_chars=options.grid_max_body_chars,
        )

    return NewsEntity(
        title=row.title,
        content=content,
        bullets=bullets,
        contact_info=fields.get("contact_info"),
        featured_image_ref=image_ref,
        research_line=fields.get("research_line"),
        newsletter_number=fields.get("newsletter_number"),
        position=position or None,
        published_on=fields.get("published_on"),
        external_id=row.external_id,
        post_status=options.post_status,
    )


_BUILDERS: dict[ContentKind, Callable[[ValidatedRow, BuildOptions], ContentEntity]] = {
    ContentKind.PROJECT: _build_project,
    ContentKind.CALL: _build_call,
    ContentKind.NEWS: _build_news,
}


def build_entity(row: ValidatedRow, options: BuildOptions) -> ContentEntity:
    """
    Build the unsaved entity for `row.kind`.
    """

    if not row.title:
        raise EntityBuildError("Title is required.")
    return _BUILDERS[row.kind](row, options)
