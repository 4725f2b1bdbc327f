"""
app/parsers/spreadsheet_parser.py

Reads the first worksheet of an .xlsx upload into ordered raw rows.

Row 1 holds the headers; data starts on row 2. Columns are resolved through
the fixed per-kind layout in `app.mappers.content_columns`, unknown columns
are dropped, and completely blank rows are skipped.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.content import HEADER_ROW_OFFSET, ContentKind, RawRow
from app.mappers.content_columns import ColumnLayout, get_column_layout

logger = logging.getLogger(__name__)


class SpreadsheetStructureError(ValueError):
    """
    Raised when a spreadsheet cannot be read or lacks the expected shape.
    """


@dataclass(frozen=True)
class ParsedSheet:
    """
    Raw rows of one worksheet plus the header line that produced them.
    """

    kind: ContentKind
    headers: list[str]
    rows: list[RawRow]

    @property
    def total_rows(self) -> int:
        return len(self.rows)


class SpreadsheetParser:
    """
    Converts spreadsheet files into `RawRow` sequences for one content kind.
    """

    def parse(self, *, file_path: str | Path, kind: ContentKind) -> ParsedSheet:
        path = Path(file_path)
        if not path.is_file():
            raise SpreadsheetStructureError(f"Spreadsheet file not found: {path.name}")

        try:
            workbook = load_workbook(filename=str(path), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise SpreadsheetStructureError(f"Unable to read spreadsheet: {exc}") from exc

        try:
            if not workbook.worksheets:
                raise SpreadsheetStructureError("Spreadsheet has no worksheets.")
            sheet = workbook.worksheets[0]
            values = [tuple(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

        return self.parse_values(values=values, kind=kind)

    def parse_values(self, *, values: Sequence[Sequence[Any]], kind: ContentKind) -> ParsedSheet:
        """
        Map already-extracted cell values (header first) onto raw rows.
        """

        if not values or all(_is_blank_cell(cell) for cell in values[0]):
            raise SpreadsheetStructureError("Spreadsheet header row is missing.")

        layout = get_column_layout(kind)
        headers = [cell_to_string(cell) for cell in values[0]]
        missing = layout.missing_required_headers(headers)
        if missing:
            raise SpreadsheetStructureError(
                f"Missing required columns for {kind.label}: {', '.join(missing)}"
            )

        field_by_index = self._field_by_index(layout=layout, headers=headers)
        rows: list[RawRow] = []
        for index, data_row in enumerate(values[1:], start=1):
            if all(_is_blank_cell(cell) for cell in data_row):
                continue

            mapped: dict[str, str] = {}
            for column_index, field_name in field_by_index.items():
                cell = data_row[column_index] if column_index < len(data_row) else None
                mapped[field_name] = cell_to_string(cell)

            rows.append(RawRow(row_number=len(rows) + 1 + HEADER_ROW_OFFSET, values=mapped))
            logger.debug("Parsed spreadsheet row kind=%s sheet_row=%s", kind.label, index + 1)

        logger.info(
            "Spreadsheet parsed kind=%s columns=%s rows=%s",
            kind.label,
            len(field_by_index),
            len(rows),
        )
        return ParsedSheet(kind=kind, headers=headers, rows=rows)

    @staticmethod
    def _field_by_index(*, layout: ColumnLayout, headers: list[str]) -> dict[int, str]:
        resolved: dict[int, str] = {}
        seen: set[str] = set()
        for index, header in enumerate(headers):
            if not header:
                continue
            field_name = layout.field_for_header(header)
            if field_name is None or field_name in seen:
                continue
            seen.add(field_name)
            resolved[index] = field_name
        return resolved


def cell_to_string(value: Any) -> str:
    """
    Render one cell value as the string form used by validation.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_blank_cell(value: Any) -> bool:
    return value is None or str(value).strip() == ""
