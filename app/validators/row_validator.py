"""
app/validators/row_validator.py

Per-kind schema validation and type coercion for parsed spreadsheet rows.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Iterable
from urllib.parse import urlparse

from app.domain.content import (
    ALLOWED_NEWS_POSITIONS,
    ContentKind,
    InvalidRow,
    RawRow,
    RowValidationError,
    ValidatedRow,
    ValidationReport,
)
from app.mappers.content_columns import ColumnLayout, get_column_layout

logger = logging.getLogger(__name__)

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
)

TIME_SUFFIXES: tuple[str, ...] = ("", " %H:%M:%S", " %H:%M")

DATE_FIELDS = frozenset({"start_date", "end_date", "opening_date", "closing_date", "published_on"})
EMAIL_FIELDS = frozenset({"author_email"})
URL_FIELDS = frozenset({"website_url", "publication_link"})
POSITIVE_INTEGER_FIELDS = frozenset({"newsletter_number"})
ENUM_FIELDS: dict[str, frozenset[str]] = {"position": ALLOWED_NEWS_POSITIONS}

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_date(value: str) -> date | None:
    """
    Parse a spreadsheet date string; return None when no format matches.
    """

    raw = value.strip()
    if not raw:
        return None

    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        return datetime.fromisoformat(normalized).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        for suffix in TIME_SUFFIXES:
            try:
                return datetime.strptime(raw, fmt + suffix).date()
            except ValueError:
                continue
    return None


def is_valid_http_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class RowValidator:
    """
    Partitions raw rows into valid and invalid rows for one content kind.

    Validation is a pure function of the rows and the kind; it never touches
    persistence or the network.
    """

    def __init__(self, *, log_validation_errors: bool = True) -> None:
        self._log_validation_errors = log_validation_errors

    def validate(self, *, rows: Iterable[RawRow], kind: ContentKind) -> ValidationReport:
        layout = get_column_layout(kind)
        valid_rows: list[ValidatedRow] = []
        invalid_rows: list[InvalidRow] = []

        for row in rows:
            fields, errors = self.validate_row(row=row, layout=layout)
            if errors:
                for error in errors:
                    self._log_error(kind, error)
                invalid_rows.append(
                    InvalidRow(row_number=row.row_number, errors=errors, raw=dict(row.values))
                )
                continue
            valid_rows.append(
                ValidatedRow(
                    row_number=row.row_number,
                    kind=kind,
                    fields=fields,
                    raw=dict(row.values),
                )
            )

        logger.info(
            "Rows validated kind=%s valid=%s invalid=%s",
            kind.label,
            len(valid_rows),
            len(invalid_rows),
        )
        return ValidationReport(valid_rows=valid_rows, invalid_rows=invalid_rows)

    def validate_row(
        self,
        *,
        row: RawRow,
        layout: ColumnLayout,
    ) -> tuple[dict[str, Any], list[RowValidationError]]:
        errors: list[RowValidationError] = []
        fields: dict[str, Any] = {}

        for field_name in layout.columns.values():
            raw_value = row.get(field_name)
            header = layout.header_for_field(field_name)

            if self._is_blank(raw_value):
                if field_name in layout.required_fields:
                    errors.append(
                        RowValidationError(
                            row_number=row.row_number,
                            column=header,
                            message=f"Missing required field '{header}'.",
                            value=None,
                        )
                    )
                fields[field_name] = None
                continue

            value = str(raw_value).strip()
            if field_name in DATE_FIELDS:
                fields[field_name] = self._parse_date_field(
                    value=value, header=header, row_number=row.row_number, errors=errors
                )
            elif field_name in POSITIVE_INTEGER_FIELDS:
                fields[field_name] = self._parse_positive_integer(
                    value=value, header=header, row_number=row.row_number, errors=errors
                )
            elif field_name in ENUM_FIELDS:
                fields[field_name] = self._parse_enum(
                    value=value,
                    allowed=ENUM_FIELDS[field_name],
                    header=header,
                    row_number=row.row_number,
                    errors=errors,
                )
            elif field_name in EMAIL_FIELDS:
                if not _EMAIL_PATTERN.match(value):
                    errors.append(
                        RowValidationError(
                            row_number=row.row_number,
                            column=header,
                            message=f"Invalid e-mail address in '{header}'.",
                            value=value,
                        )
                    )
                fields[field_name] = value
            elif field_name in URL_FIELDS:
                if not is_valid_http_url(value):
                    errors.append(
                        RowValidationError(
                            row_number=row.row_number,
                            column=header,
                            message=f"Invalid URL in '{header}'.",
                            value=value,
                        )
                    )
                fields[field_name] = value
            else:
                fields[field_name] = value

        return fields, errors

    def _parse_date_field(
        self,
        *,
        value: str,
        header: str,
        row_number: int,
        errors: list[RowValidationError],
    ) -> date | None:
        parsed = parse_date(value)
        if parsed is None:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=header,
                    message=f"Invalid date format in '{header}'.",
                    value=value,
                )
            )
        return parsed

    def _parse_positive_integer(
        self,
        *,
        value: str,
        header: str,
        row_number: int,
        errors: list[RowValidationError],
    ) -> int | None:
        try:
            number = float(value)
        except ValueError:
            number = None

        if number is None or not number.is_integer() or number <= 0:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=header,
                    message=f"'{header}' must be a positive integer.",
                    value=value,
                )
            )
            return None
        return int(number)

    def _parse_enum(
        self,
        *,
        value: str,
        allowed: frozenset[str],
        header: str,
        row_number: int,
        errors: list[RowValidationError],
    ) -> str | None:
        normalized = value.strip().lower()
        if normalized not in allowed:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=header,
                    message=f"Unsupported value in '{header}'. Allowed values: {', '.join(sorted(allowed))}.",
                    value=value,
                )
            )
            return None
        return normalized

    def _log_error(self, kind: ContentKind, error: RowValidationError) -> None:
        if not self._log_validation_errors:
            return
        logger.warning(
            "Row validation error kind=%s row=%s column=%s message=%s value=%r",
            kind.label,
            error.row_number,
            error.column,
            error.message,
            error.value,
        )

    @staticmethod
    def _is_blank(value: Any) -> bool:
        return value is None or str(value).strip() == ""
