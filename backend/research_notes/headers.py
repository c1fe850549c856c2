"""Derived table headers: lettered columns and numbered rows."""
from __future__ import annotations

from .document_models import TableData


def default_column_header(index: int) -> str:
    """Return the spreadsheet style letter for a 0-based column index.

    ``0 -> "A"``, ``25 -> "Z"``, ``26 -> "AA"``.
    """

    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    letters: list[str] = []
    value = index + 1
    while value:
        value, remainder = divmod(value - 1, 26)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


def default_row_header(index: int) -> str:
    """Return the 1-based ordinal used for an unnamed row."""

    if index < 0:
        raise ValueError(f"Row index must be non-negative, got {index}")
    return str(index + 1)


def column_header(table: TableData, index: int) -> str:
    headers = table.col_headers
    if headers is not None and index < len(headers):
        return headers[index]
    return default_column_header(index)


def row_header(table: TableData, index: int) -> str:
    headers = table.row_headers
    if headers is not None and index < len(headers):
        return headers[index]
    return default_row_header(index)


def column_headers(table: TableData) -> list[str]:
    return [column_header(table, index) for index in range(table.column_count)]


def row_headers(table: TableData) -> list[str]:
    return [row_header(table, index) for index in range(table.row_count)]


__all__ = [
    "column_header",
    "column_headers",
    "default_column_header",
    "default_row_header",
    "row_header",
    "row_headers",
]
