"""
tests/test_row_validator.py

Pytest unit tests for RowValidator.

Pure Python, no I/O: rows are built directly as RawRow values.
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.content import ContentKind, RawRow
from app.validators.row_validator import RowValidator, is_valid_http_url, parse_date


@pytest.fixture()
def validator() -> RowValidator:
    return RowValidator(log_validation_errors=False)


def _call_values(**overrides: str) -> dict[str, str]:
    values = {
        "external_id": "C-1",
        "title": "Convocatoria 1",
        "contact": "fondos@example.org",
        "description": "Apoyo a proyectos.",
        "publication_link": "https://example.org/c1",
        "opening_date": "2024-05-01",
        "closing_date": "30/06/2024",
    }
    values.update(overrides)
    return values


def _news_values(**overrides: str) -> dict[str, str]:
    values = {
        "title": "Noticia",
        "content": "Cuerpo de la nota.",
        "newsletter_number": "3",
        "featured_image_ref": "",
        "position": "",
    }
    values.update(overrides)
    return values


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestParseDate:
    @pytest.mark.parametrize(
        "raw",
        ["2024-06-30", "2024/06/30", "30/06/2024", "30-06-2024", "2024-06-30 14:05:00", "30/06/2024 14:05"],
    )
    def test_accepted_formats(self, raw: str) -> None:
        assert parse_date(raw) == date(2024, 6, 30)

    def test_rejects_free_text(self) -> None:
        assert parse_date("fin de junio") is None


class TestHttpUrl:
    def test_accepts_https(self) -> None:
        assert is_valid_http_url("https://example.org/a")

    def test_rejects_missing_scheme(self) -> None:
        assert not is_valid_http_url("example.org/a")

    def test_rejects_ftp(self) -> None:
        assert not is_valid_http_url("ftp://example.org/a")


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


class TestValidate:
    def test_every_row_gets_exactly_one_outcome(self, validator: RowValidator) -> None:
        rows = [
            RawRow(row_number=2, values=_call_values()),
            RawRow(row_number=3, values=_call_values(title="")),
            RawRow(row_number=4, values=_call_values(title="Otra")),
        ]

        report = validator.validate(rows=rows, kind=ContentKind.CALL)

        assert report.total == 3
        assert [row.row_number for row in report.valid_rows] == [2, 4]
        assert [row.row_number for row in report.invalid_rows] == [3]

    def test_valid_row_fields_are_coerced(self, validator: RowValidator) -> None:
        report = validator.validate(rows=[RawRow(row_number=2, values=_call_values())], kind=ContentKind.CALL)

        fields = report.valid_rows[0].fields
        assert fields["opening_date"] == date(2024, 5, 1)
        assert fields["closing_date"] == date(2024, 6, 30)
        assert report.valid_rows[0].title == "Convocatoria 1"
        assert report.valid_rows[0].external_id == "C-1"

    def test_missing_required_field_reason(self, validator: RowValidator) -> None:
        report = validator.validate(
            rows=[RawRow(row_number=5, values=_call_values(contact="  "))],
            kind=ContentKind.CALL,
        )

        invalid = report.invalid_rows[0]
        assert invalid.row_number == 5
        assert invalid.reasons == ["Missing required field 'Contacto'."]

    def test_all_errors_of_a_row_are_collected(self, validator: RowValidator) -> None:
        values = _call_values(title="", closing_date="mañana", publication_link="no es url")

        report = validator.validate(rows=[RawRow(row_number=2, values=values)], kind=ContentKind.CALL)

        assert len(report.invalid_rows[0].errors) == 3

    def test_bad_project_email(self, validator: RowValidator) -> None:
        values = {
            "external_id": "P-1",
            "title": "Proyecto",
            "objective": "Objetivo",
            "author_name": "Ana",
            "author_email": "ana-at-uni",
            "university": "UV",
            "country": "México",
            "knowledge_area": "Ciencias",
            "research_line": "Salud",
            "start_date": "2024-01-01",
            "end_date": "2024-12-31",
        }

        report = validator.validate(rows=[RawRow(row_number=2, values=values)], kind=ContentKind.PROJECT)

        assert report.invalid_rows[0].errors[0].column == "Correo electrónico institucional"


# ---------------------------------------------------------------------------
# News rules
# ---------------------------------------------------------------------------


class TestNewsRules:
    def test_newsletter_number_must_be_positive_integer(self, validator: RowValidator) -> None:
        rows = [
            RawRow(row_number=2, values=_news_values(newsletter_number="0")),
            RawRow(row_number=3, values=_news_values(newsletter_number="2.5")),
            RawRow(row_number=4, values=_news_values(newsletter_number="cinco")),
            RawRow(row_number=5, values=_news_values(newsletter_number="4.0")),
        ]

        report = validator.validate(rows=rows, kind=ContentKind.NEWS)

        assert [row.row_number for row in report.invalid_rows] == [2, 3, 4]
        assert report.valid_rows[0].fields["newsletter_number"] == 4

    def test_position_must_be_in_allowed_set(self, validator: RowValidator) -> None:
        rows = [
            RawRow(row_number=2, values=_news_values(position="Highlight")),
            RawRow(row_number=3, values=_news_values(position="portada")),
        ]

        report = validator.validate(rows=rows, kind=ContentKind.NEWS)

        assert report.valid_rows[0].fields["position"] == "highlight"
        assert report.invalid_rows[0].row_number == 3

    def test_image_reference_is_not_validated(self, validator: RowValidator) -> None:
        row = RawRow(row_number=2, values=_news_values(featured_image_ref="no es una url"))

        report = validator.validate(rows=[row], kind=ContentKind.NEWS)

        assert report.valid_rows[0].fields["featured_image_ref"] == "no es una url"

    def test_only_title_and_body_are_required(self, validator: RowValidator) -> None:
        row = RawRow(row_number=2, values={"title": "Solo", "content": "Cuerpo"})

        report = validator.validate(rows=[row], kind=ContentKind.NEWS)

        assert len(report.valid_rows) == 1
        assert report.valid_rows[0].fields["newsletter_number"] is None
