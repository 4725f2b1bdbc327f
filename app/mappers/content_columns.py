"""
app/mappers/content_columns.py

Fixed spreadsheet column layouts per content kind.

Headers are matched after normalisation (case, accents, punctuation and
surrounding whitespace are ignored), so "Título " and "titulo" resolve to
the same column.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Sequence

from app.domain.content import ContentKind


def normalize_header(header: str) -> str:
    """
    Normalize a column name for tolerant matching.
    """

    decomposed = unicodedata.normalize("NFKD", str(header or ""))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "".join(ch for ch in stripped.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class ColumnLayout:
    """
    Header-to-field mapping and required fields for one content kind.
    """

    kind: ContentKind
    columns: dict[str, str]
    required_fields: tuple[str, ...]

    def field_for_header(self, header: str) -> str | None:
        return self._normalized_lookup().get(normalize_header(header))

    def header_for_field(self, field_name: str) -> str:
        for header, mapped in self.columns.items():
            if mapped == field_name:
                return header
        return field_name

    def missing_required_headers(self, headers: Sequence[str]) -> list[str]:
        present = {self.field_for_header(header) for header in headers if header}
        return [
            self.header_for_field(field_name)
            for field_name in self.required_fields
            if field_name not in present
        ]

    def _normalized_lookup(self) -> dict[str, str]:
        return {normalize_header(header): field_name for header, field_name in self.columns.items()}


PROJECT_LAYOUT = ColumnLayout(
    kind=ContentKind.PROJECT,
    columns={
        "Id": "external_id",
        "Nombre completo (Apellido paterno, materno y nombre)": "author_name",
        "Correo electrónico institucional": "author_email",
        "Universidad": "university",
        "País": "country",
        "Área del conocimiento": "knowledge_area",
        "Línea Generadora y de Aplicación del Conocimiento": "research_line",
        "Título del proyecto": "title",
        "Objetivo del proyecto": "objective",
        "Fecha de inicio": "start_date",
        "Fecha de termino": "end_date",
        "Página web o sitio para más información": "website_url",
        "ODS": "sdg",
        "Resultados esperados": "expected_results",
        "Resumen de divulgación": "summary",
        "Problematica": "problem_statement",
        "A quién va dirigido": "target_audience",
    },
    required_fields=(
        "external_id",
        "title",
        "objective",
        "author_name",
        "author_email",
        "university",
        "country",
        "knowledge_area",
        "research_line",
        "start_date",
        "end_date",
    ),
)

CALL_LAYOUT = ColumnLayout(
    kind=ContentKind.CALL,
    columns={
        "Id": "external_id",
        "Título de la convocatoría": "title",
        "Contacto": "contact",
        "Descripción": "description",
        "Link de la publicación": "publication_link",
        "Apertura": "opening_date",
        "Cierre": "closing_date",
    },
    required_fields=(
        "external_id",
        "title",
        "contact",
        "description",
        "opening_date",
        "closing_date",
    ),
)

NEWS_LAYOUT = ColumnLayout(
    kind=ContentKind.NEWS,
    columns={
        "Id": "external_id",
        "Marca temporal": "published_on",
        "Título": "title",
        "Dos Bullets": "bullets",
        "Cuerpo de la nota": "content",
        "Datos de contacto": "contact_info",
        "Número de boletín": "newsletter_number",
        "Imagen de la nota": "featured_image_ref",
        "Línea Generadora de Investigación": "research_line",
        "Posición": "position",
    },
    required_fields=("title", "content"),
)

COLUMN_LAYOUTS: dict[ContentKind, ColumnLayout] = {
    ContentKind.PROJECT: PROJECT_LAYOUT,
    ContentKind.CALL: CALL_LAYOUT,
    ContentKind.NEWS: NEWS_LAYOUT,
}


def get_column_layout(kind: ContentKind) -> ColumnLayout:
    return COLUMN_LAYOUTS[kind]
