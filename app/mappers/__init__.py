"""
app/mappers package marker.
"""

from app.mappers.content_columns import (
    COLUMN_LAYOUTS,
    ColumnLayout,
    get_column_layout,
    normalize_header,
)

__all__ = [
    "COLUMN_LAYOUTS",
    "ColumnLayout",
    "get_column_layout",
    "normalize_header",
]
