"""Block model shared by the store, serializer, renderers and exporter."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

BlockType = Literal["text", "image", "table", "chart"]
ChartKind = Literal["line", "bar"]

MIN_IMAGE_WIDTH = 10
MAX_IMAGE_WIDTH = 100
DEFAULT_IMAGE_WIDTH = 100


@dataclass(slots=True, frozen=True)
class TableData:
    """Rectangular grid of cells with optional stored headers.

    Parameters
    ----------
    rows:
        Cell values row by row. Every row has the same length.
    col_headers:
        Stored column headers. ``None`` means the lettered defaults are used.
    row_headers:
        Stored row headers. ``None`` means the 1-based ordinals are used.
    """

    rows: list[list[str]]
    col_headers: list[str] | None = None
    row_headers: list[str] | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0


@dataclass(slots=True, frozen=True)
class ChartPoint:
    name: str
    value: float


@dataclass(slots=True, frozen=True)
class ChartData:
    """Data series of a line or bar chart; never fewer than one point."""

    data: list[ChartPoint]
    type: ChartKind = "line"
    title: str | None = None
    x_axis_label: str | None = None
    y_axis_label: str | None = None


@dataclass(slots=True, frozen=True)
class TextBlock:
    id: str
    content: str = ""
    type: Literal["text"] = field(default="text", init=False)


@dataclass(slots=True, frozen=True)
class ImageBlock:
    id: str
    content: str
    width: float = DEFAULT_IMAGE_WIDTH
    type: Literal["image"] = field(default="image", init=False)


@dataclass(slots=True, frozen=True)
class TableBlock:
    id: str
    table_data: TableData
    type: Literal["table"] = field(default="table", init=False)


@dataclass(slots=True, frozen=True)
class ChartBlock:
    id: str
    chart_data: ChartData
    type: Literal["chart"] = field(default="chart", init=False)


Block: TypeAlias = TextBlock | ImageBlock | TableBlock | ChartBlock


@dataclass(slots=True, frozen=True)
class NoteDocument:
    """Ordered, never empty, sequence of blocks making up one note."""

    blocks: tuple[Block, ...]

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)

    @property
    def ids(self) -> list[str]:
        return [block.id for block in self.blocks]


def is_valid_table(table: TableData) -> bool:
    """Return ``True`` when the grid is rectangular and headers fit it."""

    if not table.rows:
        return False
    width = len(table.rows[0])
    if width == 0 or any(len(row) != width for row in table.rows):
        return False
    if table.col_headers is not None and len(table.col_headers) != width:
        return False
    if table.row_headers is not None and len(table.row_headers) != len(table.rows):
        return False
    return True


def is_valid_chart(chart: ChartData) -> bool:
    return len(chart.data) >= 1 and chart.type in ("line", "bar")


__all__ = [
    "Block",
    "BlockType",
    "ChartBlock",
    "ChartData",
    "ChartKind",
    "ChartPoint",
    "DEFAULT_IMAGE_WIDTH",
    "ImageBlock",
    "MAX_IMAGE_WIDTH",
    "MIN_IMAGE_WIDTH",
    "NoteDocument",
    "TableBlock",
    "TableData",
    "TextBlock",
    "is_valid_chart",
    "is_valid_table",
]
