"""
db/models/content_item.py

Persisted Projects, Calls and News share one table keyed by kind.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONDocument, TimestampMixin


class ContentItem(Base, TimestampMixin):
    __tablename__ = "content_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Projects, Calls, News",
    )
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    post_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    call_status: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="Calls only: scheduled, open, closing_soon, expired",
    )
    closing_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    featured_media_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    attributes: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=dict,
        comment="Kind-specific fields",
    )

    # No unique constraint on (kind, title): concurrent same-kind batches
    # are last-committed-wins.
    __table_args__ = (
        Index("ix_content_items_kind_title", "kind", "title"),
        Index("ix_content_items_kind_external_id", "kind", "external_id"),
        Index("ix_content_items_kind_call_status_closing_date", "kind", "call_status", "closing_date"),
    )
