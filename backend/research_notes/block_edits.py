"""Structural edits for table and chart payloads.

Each public function returns an *edit*: a callable taking the current payload
and returning the updated one. Edits never mutate their input. An edit that
would break a structural invariant (fewer than one row, column or chart point,
or an index outside the grid) returns the input unchanged.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .document_models import ChartData, ChartKind, ChartPoint, TableData
from .headers import column_headers, default_column_header, default_row_header, row_headers

TableEdit = Callable[[TableData], TableData]
ChartEdit = Callable[[ChartData], ChartData]

DEFAULT_CHART_POINTS = (
    ChartPoint(name="Item 1", value=10.0),
    ChartPoint(name="Item 2", value=20.0),
    ChartPoint(name="Item 3", value=15.0),
)


def _copy_rows(table: TableData) -> list[list[str]]:
    return [list(row) for row in table.rows]


def _in_range(index: int, size: int) -> bool:
    return 0 <= index < size


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------
def default_table() -> TableData:
    """Return the 2x3 empty grid inserted by the editor."""

    return TableData(
        rows=[["", "", ""], ["", "", ""]],
        col_headers=["A", "B", "C"],
        row_headers=["1", "2"],
    )


def update_cell(row_index: int, column_index: int, value: str) -> TableEdit:
    def edit(table: TableData) -> TableData:
        if not _in_range(row_index, table.row_count) or not _in_range(column_index, table.column_count):
            return table
        rows = _copy_rows(table)
        rows[row_index][column_index] = value
        return replace(table, rows=rows)

    return edit


def update_column_header(column_index: int, value: str) -> TableEdit:
    """Store a column header, materializing the derived ones on first edit."""

    def edit(table: TableData) -> TableData:
        if not _in_range(column_index, table.column_count):
            return table
        headers = column_headers(table)
        headers[column_index] = value
        return replace(table, col_headers=headers)

    return edit


def update_row_header(row_index: int, value: str) -> TableEdit:
    def edit(table: TableData) -> TableData:
        if not _in_range(row_index, table.row_count):
            return table
        headers = row_headers(table)
        headers[row_index] = value
        return replace(table, row_headers=headers)

    return edit


def add_row() -> TableEdit:
    def edit(table: TableData) -> TableData:
        width = table.column_count or 1
        rows = _copy_rows(table)
        rows.append([""] * width)
        headers = table.row_headers
        if headers is not None:
            headers = [*headers, default_row_header(table.row_count)]
        return replace(table, rows=rows, row_headers=headers)

    return edit


def remove_row(row_index: int) -> TableEdit:
    def edit(table: TableData) -> TableData:
        if table.row_count <= 1 or not _in_range(row_index, table.row_count):
            return table
        rows = [list(row) for index, row in enumerate(table.rows) if index != row_index]
        headers = table.row_headers
        if headers is not None:
            headers = [header for index, header in enumerate(headers) if index != row_index]
        return replace(table, rows=rows, row_headers=headers)

    return edit


def add_column() -> TableEdit:
    def edit(table: TableData) -> TableData:
        rows = [[*row, ""] for row in table.rows]
        headers = table.col_headers
        if headers is not None:
            headers = [*headers, default_column_header(table.column_count)]
        return replace(table, rows=rows, col_headers=headers)

    return edit


def remove_column(column_index: int) -> TableEdit:
    def edit(table: TableData) -> TableData:
        if table.column_count <= 1 or not _in_range(column_index, table.column_count):
            return table
        rows = [
            [cell for index, cell in enumerate(row) if index != column_index]
            for row in table.rows
        ]
        headers = table.col_headers
        if headers is not None:
            headers = [header for index, header in enumerate(headers) if index != column_index]
        return replace(table, rows=rows, col_headers=headers)

    return edit


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------
def default_chart() -> ChartData:
    return ChartData(data=list(DEFAULT_CHART_POINTS), type="line")


def set_chart_type(kind: ChartKind) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        if kind not in ("line", "bar"):
            return chart
        return replace(chart, type=kind)

    return edit


def toggle_chart_type() -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        return replace(chart, type="bar" if chart.type == "line" else "line")

    return edit


def set_title(title: str | None) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        return replace(chart, title=title)

    return edit


def set_axis_labels(x_axis_label: str | None, y_axis_label: str | None) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        return replace(chart, x_axis_label=x_axis_label, y_axis_label=y_axis_label)

    return edit


def update_point(index: int, *, name: str | None = None, value: float | None = None) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        if not _in_range(index, len(chart.data)):
            return chart
        points = list(chart.data)
        current = points[index]
        points[index] = ChartPoint(
            name=current.name if name is None else name,
            value=current.value if value is None else float(value),
        )
        return replace(chart, data=points)

    return edit


def add_point(name: str | None = None, value: float = 0.0) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        label = name if name is not None else f"Item {len(chart.data) + 1}"
        return replace(chart, data=[*chart.data, ChartPoint(name=label, value=float(value))])

    return edit


def remove_point(index: int) -> ChartEdit:
    def edit(chart: ChartData) -> ChartData:
        if len(chart.data) <= 1 or not _in_range(index, len(chart.data)):
            return chart
        return replace(chart, data=[point for position, point in enumerate(chart.data) if position != index])

    return edit


__all__ = [
    "ChartEdit",
    "TableEdit",
    "add_column",
    "add_point",
    "add_row",
    "default_chart",
    "default_table",
    "remove_column",
    "remove_point",
    "remove_row",
    "set_axis_labels",
    "set_chart_type",
    "set_title",
    "toggle_chart_type",
    "update_cell",
    "update_column_header",
    "update_point",
    "update_row_header",
]
