"""
app/domain/content.py

Domain types for spreadsheet content ingestion: content kinds, raw and
validated rows, and the three content entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Union

# Spreadsheet header occupies row 1; data row N is reported as N + 1.
HEADER_ROW_OFFSET = 1


class ContentKind(str, Enum):
    """
    Closed set of content kinds handled by the pipeline.
    """

    PROJECT = "Projects"
    CALL = "Calls"
    NEWS = "News"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> "ContentKind":
        """
        Resolve a kind from its wire label or its Spanish form name.
        """

        normalized = (label or "").strip()
        for kind in cls:
            if normalized.lower() == kind.value.lower():
                return kind
        alias = _SPANISH_ALIASES.get(normalized.lower())
        if alias is None:
            raise ValueError(f"Unknown content kind: {label!r}")
        return alias


_SPANISH_ALIASES: dict[str, ContentKind] = {
    "proyectos": ContentKind.PROJECT,
    "convocatorias": ContentKind.CALL,
    "noticias": ContentKind.NEWS,
}


class PostStatus:
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "publish"
    PRIVATE = "private"


ALLOWED_POST_STATUSES = frozenset(
    {PostStatus.DRAFT, PostStatus.PENDING, PostStatus.PUBLISHED, PostStatus.PRIVATE}
)


class CallStatus:
    SCHEDULED = "scheduled"
    OPEN = "open"
    CLOSING_SOON = "closing_soon"
    EXPIRED = "expired"


class NewsPosition:
    HIGHLIGHT = "highlight"
    GRID = "grid"
    NORMAL = "normal"


ALLOWED_NEWS_POSITIONS = frozenset(
    {NewsPosition.HIGHLIGHT, NewsPosition.GRID, NewsPosition.NORMAL}
)


def compute_call_status(closing_date: date, now: datetime) -> str:
    """
    Derive a call's lifecycle status from its closing date.

    The closing day itself is still open; the call expires once the
    reference date is strictly after it.
    """

    today = now.date() if isinstance(now, datetime) else now
    if today > closing_date:
        return CallStatus.EXPIRED
    return CallStatus.OPEN


@dataclass(frozen=True)
class RawRow:
    """
    One spreadsheet data row keyed by logical field name.
    """

    row_number: int
    values: dict[str, str]

    def get(self, field_name: str) -> str | None:
        return self.values.get(field_name)


@dataclass(frozen=True)
class RowValidationError:
    """
    One validation error detail for a spreadsheet row.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class ValidatedRow:
    """
    A row that passed schema validation, with coerced field values.
    """

    row_number: int
    kind: ContentKind
    fields: dict[str, Any]
    raw: dict[str, str]

    @property
    def title(self) -> str:
        return str(self.fields.get("title") or "")

    @property
    def external_id(self) -> str | None:
        value = self.fields.get("external_id")
        return str(value) if value not in (None, "") else None


@dataclass(frozen=True)
class InvalidRow:
    """
    A row rejected by schema validation.
    """

    row_number: int
    errors: list[RowValidationError]
    raw: dict[str, str] = field(default_factory=dict)

    @property
    def reasons(self) -> list[str]:
        return [error.message for error in self.errors]


@dataclass(frozen=True)
class ValidationReport:
    """
    Partition of a parsed batch into valid and invalid rows.
    """

    valid_rows: list[ValidatedRow]
    invalid_rows: list[InvalidRow]

    @property
    def total(self) -> int:
        return len(self.valid_rows) + len(self.invalid_rows)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectEntity:
    kind: ClassVar[ContentKind] = ContentKind.PROJECT

    title: str
    objective: str
    research_line: str
    start_date: date
    end_date: date
    author_name: str = ""
    author_email: str = ""
    university: str = ""
    country: str = ""
    knowledge_area: str = ""
    summary: str | None = None
    website_url: str | None = None
    sdg: str | None = None
    expected_results: str | None = None
    problem_statement: str | None = None
    target_audience: str | None = None
    external_id: str | None = None
    post_status: str = PostStatus.PENDING
    id: int | None = None


@dataclass(frozen=True)
class CallEntity:
    kind: ClassVar[ContentKind] = ContentKind.CALL

    title: str
    opening_date: date
    closing_date: date
    contact: str
    description: str = ""
    publication_link: str | None = None
    call_status: str = CallStatus.OPEN
    external_id: str | None = None
    post_status: str = PostStatus.PENDING
    id: int | None = None

    def is_open(self) -> bool:
        return self.call_status == CallStatus.OPEN


@dataclass(frozen=True)
class NewsEntity:
    kind: ClassVar[ContentKind] = ContentKind.NEWS

    title: str
    content: str
    bullets: tuple[str, ...] = ()
    contact_info: str | None = None
    featured_image_ref: str | None = None
    research_line: str | None = None
    newsletter_number: int | None = None
    position: str | None = None
    published_on: date | None = None
    external_id: str | None = None
    post_status: str = PostStatus.PENDING
    id: int | None = None


ContentEntity = Union[ProjectEntity, CallEntity, NewsEntity]
