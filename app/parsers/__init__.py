"""
app/parsers package marker.
"""

from app.parsers.spreadsheet_parser import (
    ParsedSheet,
    SpreadsheetParser,
    SpreadsheetStructureError,
    cell_to_string,
)

__all__ = [
    "ParsedSheet",
    "SpreadsheetParser",
    "SpreadsheetStructureError",
    "cell_to_string",
]
