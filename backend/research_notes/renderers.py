"""Pure block renderers producing visual descriptions.

The descriptions are consumed by the HTTP API for interactive display and by
:mod:`research_notes.rasterizer` for export. Rendering never writes anything
back to a block.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, assert_never

from .document_models import (
    MAX_IMAGE_WIDTH,
    MIN_IMAGE_WIDTH,
    Block,
    ChartBlock,
    ChartData,
    ChartKind,
    ImageBlock,
    NoteDocument,
    TableBlock,
    TextBlock,
)
from .headers import column_headers, row_headers


@dataclass(slots=True, frozen=True)
class TextVisual:
    text: str
    kind: str = "text"


@dataclass(slots=True, frozen=True)
class ImageVisual:
    source: str
    width_percent: float
    kind: str = "image"


@dataclass(slots=True, frozen=True)
class TableVisual:
    column_headers: tuple[str, ...]
    row_headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    kind: str = "table"


@dataclass(slots=True, frozen=True)
class ChartVisual:
    """Chart ready to be drawn.

    ``points`` hold one ``(x, y)`` pair per data point in the unit square,
    ``y = 0`` being the bottom of the value range. ``baseline`` is the
    normalized position of the zero line used by bar charts.
    """

    chart_type: ChartKind
    title: str | None
    x_axis_label: str | None
    y_axis_label: str | None
    labels: tuple[str, ...]
    values: tuple[float, ...]
    points: tuple[tuple[float, float], ...]
    value_min: float
    value_max: float
    baseline: float
    kind: str = "chart"


Visual: TypeAlias = TextVisual | ImageVisual | TableVisual | ChartVisual


def clamp_width(width: float) -> float:
    return max(float(MIN_IMAGE_WIDTH), min(float(MAX_IMAGE_WIDTH), float(width)))


def render_text(block: TextBlock) -> TextVisual:
    return TextVisual(text=block.content)


def render_image(block: ImageBlock) -> ImageVisual:
    return ImageVisual(source=block.content, width_percent=clamp_width(block.width))


def render_table(block: TableBlock) -> TableVisual:
    table = block.table_data
    return TableVisual(
        column_headers=tuple(column_headers(table)),
        row_headers=tuple(row_headers(table)),
        rows=tuple(tuple(row) for row in table.rows),
    )


def _value_range(chart: ChartData) -> tuple[float, float]:
    values = [point.value for point in chart.data]
    low, high = min(values), max(values)
    if chart.type == "bar":
        low, high = min(low, 0.0), max(high, 0.0)
    if high == low:
        low, high = low - 1.0, high + 1.0
    return low, high


def render_chart(block: ChartBlock) -> ChartVisual:
    chart = block.chart_data
    low, high = _value_range(chart)
    span = high - low
    count = len(chart.data)
    points = tuple(
        ((index + 0.5) / count, (point.value - low) / span)
        for index, point in enumerate(chart.data)
    )
    baseline = (min(max(0.0, low), high) - low) / span
    return ChartVisual(
        chart_type=chart.type,
        title=chart.title,
        x_axis_label=chart.x_axis_label,
        y_axis_label=chart.y_axis_label,
        labels=tuple(point.name for point in chart.data),
        values=tuple(point.value for point in chart.data),
        points=points,
        value_min=low,
        value_max=high,
        baseline=baseline,
    )


def render_block(block: Block) -> Visual:
    match block:
        case TextBlock():
            return render_text(block)
        case ImageBlock():
            return render_image(block)
        case TableBlock():
            return render_table(block)
        case ChartBlock():
            return render_chart(block)
        case _:
            assert_never(block)


def render_document(doc: NoteDocument) -> list[Visual]:
    return [render_block(block) for block in doc.blocks]


__all__ = [
    "ChartVisual",
    "ImageVisual",
    "TableVisual",
    "TextVisual",
    "Visual",
    "clamp_width",
    "render_block",
    "render_chart",
    "render_document",
    "render_image",
    "render_table",
    "render_text",
]
