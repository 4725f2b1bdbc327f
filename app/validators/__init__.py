"""
app/validators package marker.
"""

from app.validators.row_validator import RowValidator, is_valid_http_url, parse_date

__all__ = [
    "RowValidator",
    "is_valid_http_url",
    "parse_date",
]
