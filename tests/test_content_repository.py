"""
tests/test_content_repository.py

Integration tests for the SQLAlchemy repositories against in-memory SQLite
(engine and session fixtures live in conftest.py).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.content import CallEntity, CallStatus, ContentKind, NewsEntity, ProjectEntity
from app.repositories.category_repository import SqlCategoryRepository, slugify
from app.repositories.content_repository import ContentPersistenceError, SqlContentRepository
from db.models.category import CategoryAxis
from db.models.content_item import ContentItem


def _call(title: str = "Convocatoria", closing: date = date(2024, 6, 30), **overrides) -> CallEntity:
    values = dict(
        title=title,
        opening_date=date(2024, 5, 1),
        closing_date=closing,
        contact="fondos@example.org",
        external_id="C-1",
    )
    values.update(overrides)
    return CallEntity(**values)


# ---------------------------------------------------------------------------
# Content items
# ---------------------------------------------------------------------------


class TestSqlContentRepository:
    def test_save_assigns_id_and_round_trips(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.NEWS)
        news = NewsEntity(
            title="Noticia",
            content="Cuerpo",
            bullets=("uno", "dos"),
            newsletter_number=3,
            published_on=date(2024, 3, 1),
            external_id="N-1",
        )

        saved = repo.save(news)
        session.commit()

        assert saved.id is not None
        assert repo.find_by_id(saved.id) == saved

    def test_call_columns_are_queryable(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        saved = repo.save(_call())
        session.commit()

        row = session.get(ContentItem, saved.id)
        assert row.call_status == CallStatus.OPEN
        assert row.closing_date == date(2024, 6, 30)
        assert "call_status" not in row.attributes

    def test_lookups_are_scoped_to_kind(self, session) -> None:
        calls = SqlContentRepository(session, ContentKind.CALL)
        news = SqlContentRepository(session, ContentKind.NEWS)
        saved = calls.save(_call(title="Compartido"))

        assert calls.exists_by_title("Compartido")
        assert not news.exists_by_title("Compartido")
        assert calls.exists_by_external_id("C-1")
        assert not news.exists_by_external_id("C-1")
        assert news.find_by_id(saved.id) is None

    def test_find_by_external_id(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        repo.save(_call())

        assert repo.find_by_external_id("C-1").title == "Convocatoria"
        assert repo.find_by_external_id("C-404") is None

    def test_update_existing(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        saved = repo.save(_call())

        repo.save(replace(saved, call_status=CallStatus.EXPIRED))

        assert repo.find_by_id(saved.id).call_status == CallStatus.EXPIRED

    def test_wrong_kind_rejected(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.NEWS)

        with pytest.raises(ContentPersistenceError):
            repo.save(_call())

    def test_failed_save_keeps_earlier_rows(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.PROJECT)
        repo.begin_transaction()
        first = repo.save(
            ProjectEntity(
                title="Proyecto 1",
                objective="Objetivo",
                research_line="Salud",
                start_date=date(2024, 1, 1),
                end_date=date(2024, 12, 31),
            )
        )

        broken = ProjectEntity(
            title=None,  # type: ignore[arg-type]
            objective="Objetivo",
            research_line="Salud",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        )
        with pytest.raises(ContentPersistenceError):
            repo.save(broken)

        repo.commit()
        assert repo.find_by_id(first.id) is not None
        assert session.query(ContentItem).count() == 1

    def test_failed_lookup_runs_in_savepoint_and_batch_continues(self, session, monkeypatch) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        repo.begin_transaction()
        first = repo.save(_call(title="Primera", external_id="C-1"))

        original_scalars = session.scalars
        seen_nested: list[bool] = []

        def failing_scalars(*args, **kwargs):
            if not seen_nested:
                seen_nested.append(session.in_nested_transaction())
                raise OperationalError("SELECT", {}, Exception("canceling statement due to statement timeout"))
            return original_scalars(*args, **kwargs)

        monkeypatch.setattr(session, "scalars", failing_scalars)

        with pytest.raises(ContentPersistenceError, match="lookup failed"):
            repo.exists_by_title("Segunda")

        second = repo.save(_call(title="Segunda", external_id="C-2"))
        repo.commit()

        assert seen_nested == [True]
        assert repo.find_by_id(first.id) is not None
        assert repo.find_by_id(second.id) is not None
        assert session.query(ContentItem).count() == 2

    def test_rollback_discards_batch(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        repo.begin_transaction()
        repo.save(_call())

        repo.rollback()

        assert not repo.exists_by_title("Convocatoria")

    def test_open_calls_closed_before(self, session) -> None:
        repo = SqlContentRepository(session, ContentKind.CALL)
        past = repo.save(_call(title="Pasada", closing=date(2024, 6, 1), external_id="C-1"))
        repo.save(_call(title="Hoy", closing=date(2024, 6, 15), external_id="C-2"))
        repo.save(
            _call(
                title="Vencida",
                closing=date(2024, 5, 1),
                external_id="C-3",
                call_status=CallStatus.EXPIRED,
            )
        )

        found = repo.find_open_calls_closed_before(date(2024, 6, 15))

        assert [call.id for call in found] == [past.id]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class TestSqlCategoryRepository:
    def test_slugify(self) -> None:
        assert slugify("Línea de Investigación") == "linea-de-investigacion"

    def test_create_and_find(self, session) -> None:
        repo = SqlCategoryRepository(session)

        parent = repo.create(CategoryAxis.NEWSLETTER_BATCH, "Boletines")
        child = repo.create(
            CategoryAxis.NEWSLETTER_BATCH,
            "Boletín 7",
            parent=parent,
            meta={"newsletter_number": 7},
            slug="boletin-7",
        )

        found = repo.find_by_name(CategoryAxis.NEWSLETTER_BATCH, "Boletín 7")
        assert found == child
        assert found.parent_id == parent.id
        assert found.meta == {"newsletter_number": 7}
        assert repo.find_by_name(CategoryAxis.STATUS, "Boletín 7") is None

    def test_find_by_name_runs_in_savepoint(self, session, monkeypatch) -> None:
        repo = SqlCategoryRepository(session)
        session.begin()
        original_scalars = session.scalars
        seen_nested: list[bool] = []

        def recording_scalars(*args, **kwargs):
            seen_nested.append(session.in_nested_transaction())
            return original_scalars(*args, **kwargs)

        monkeypatch.setattr(session, "scalars", recording_scalars)

        assert repo.find_by_name(CategoryAxis.STATUS, "Vigente") is None
        assert seen_nested == [True]

    def test_duplicate_create_returns_existing(self, session) -> None:
        repo = SqlCategoryRepository(session)
        first = repo.create(CategoryAxis.STATUS, "Vigente")

        second = repo.create(CategoryAxis.STATUS, "Vigente")

        assert second.id == first.id

    def test_assign_replaces_category_on_axis(self, session) -> None:
        content = SqlContentRepository(session, ContentKind.CALL).save(_call())
        repo = SqlCategoryRepository(session)
        open_term = repo.create(CategoryAxis.STATUS, "Vigente")
        expired_term = repo.create(CategoryAxis.STATUS, "Caducado")
        line = repo.create(CategoryAxis.RESEARCH_LINE, "Salud")

        repo.assign(content.id, open_term.id, CategoryAxis.STATUS)
        repo.assign(content.id, line.id, CategoryAxis.RESEARCH_LINE)
        repo.assign(content.id, expired_term.id, CategoryAxis.STATUS)

        assert [c.name for c in repo.categories_for(content.id, CategoryAxis.STATUS)] == ["Caducado"]
        assert len(repo.categories_for(content.id)) == 2
