"""
app/services/dedup_gate.py

Decides whether a validated row describes an item that already exists.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.content import ValidatedRow
from app.repositories.contracts import ContentRepository


class DedupReason:
    TITLE = "title"
    EXTERNAL_ID = "external_id"


@dataclass(frozen=True)
class DedupDecision:
    is_duplicate: bool
    reason: str | None = None

    def warning_for(self, row: ValidatedRow) -> str:
        if self.reason == DedupReason.EXTERNAL_ID:
            return (
                f"Row {row.row_number}: skipped duplicate, external id "
                f"'{row.external_id}' already exists"
            )
        return f"Row {row.row_number}: skipped duplicate, title '{row.title}' already exists"


NEW_ITEM = DedupDecision(is_duplicate=False)


def check_duplicate(row: ValidatedRow, repository: ContentRepository) -> DedupDecision:
    """
    Title match first; the external id is only consulted when the title is new.
    """

    title = row.title.strip()
    if title and repository.exists_by_title(title):
        return DedupDecision(is_duplicate=True, reason=DedupReason.TITLE)

    external_id = row.external_id
    if external_id and repository.exists_by_external_id(external_id):
        return DedupDecision(is_duplicate=True, reason=DedupReason.EXTERNAL_ID)

    return NEW_ITEM
