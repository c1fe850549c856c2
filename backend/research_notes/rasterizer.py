"""Drawing of visual descriptions onto continuous Pillow surfaces.

A note surface has a fixed pixel width and whatever height its content
needs; :mod:`research_notes.pagination` cuts it into pages afterwards. The
cover surface is sized to exactly one page.
"""
from __future__ import annotations

import base64
import binascii
import logging
import math
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence, assert_never

from PIL import Image, ImageDraw, ImageFont

from .renderers import ChartVisual, ImageVisual, TableVisual, TextVisual, Visual

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:image/[\w.+-]+;base64,(?P<payload>.*)$", re.DOTALL)

# Reference layout width; every size below is expressed at this width.
_BASE_WIDTH = 720

WHITE = (255, 255, 255)
INK = (51, 51, 51)
HEADING = (26, 26, 26)
MUTED = (102, 102, 102)
SUBTLE = (156, 163, 175)
RULE = (229, 231, 235)
HEADER_FILL = (248, 250, 252)
ACCENT = (79, 70, 229)
PLACEHOLDER_FILL = (241, 245, 249)

Painter = Callable[[Image.Image, ImageDraw.ImageDraw, int, int], None]


@dataclass(slots=True)
class NoteHeader:
    date: str
    title: str


@dataclass(slots=True)
class CoverPage:
    project_name: str
    description: str
    author: str
    generated_on: str
    label: str = "Research Project Report"


@dataclass(slots=True)
class _Box:
    height: int
    paint: Painter


class _Fonts:
    """Font cache keyed by pixel size."""

    def __init__(self, font_path: Path | None) -> None:
        self._font_path = font_path
        self._cache: dict[int, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    def get(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        size = max(size, 6)
        font = self._cache.get(size)
        if font is None:
            if self._font_path is not None:
                font = ImageFont.truetype(str(self._font_path), size)
            else:
                font = ImageFont.load_default(size=size)
            self._cache[size] = font
        return font


def decode_image_reference(reference: str) -> Image.Image:
    """Return the image embedded in a ``data:image/...;base64,`` reference.

    Raises ``ValueError`` when the reference cannot be turned into an image.
    """

    match = _DATA_URI_RE.match(reference.strip())
    if match is None:
        raise ValueError("Image reference is not a base64 data URI")
    try:
        raw = base64.b64decode(match.group("payload"), validate=False)
        image = Image.open(BytesIO(raw))
        image.load()
    except (binascii.Error, OSError) as exc:
        raise ValueError(f"Image reference could not be decoded: {exc}") from exc
    return image.convert("RGB")


def wrap_text(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, max_width: float) -> list[str]:
    """Wrap ``text`` to ``max_width`` pixels, keeping explicit line breaks."""

    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if font.getlength(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while len(word) > 1 and font.getlength(word) > max_width:
                cut = _longest_fitting_prefix(word, font, max_width)
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


def _longest_fitting_prefix(word: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, max_width: float) -> int:
    low, high = 1, len(word)
    while low < high:
        middle = (low + high + 1) // 2
        if font.getlength(word[:middle]) <= max_width:
            low = middle
        else:
            high = middle - 1
    return low


class Rasterizer:
    """Render headers and block visuals to RGB surfaces of a fixed width."""

    def __init__(
        self,
        width_px: int = 1440,
        *,
        page_aspect: float = 277.0 / 190.0,
        font_path: Path | None = None,
    ) -> None:
        if width_px <= 0:
            raise ValueError("Surface width must be positive")
        self.width = width_px
        self.page_aspect = page_aspect
        self._unit = width_px / _BASE_WIDTH
        self._fonts = _Fonts(font_path)

    def _px(self, value: float) -> int:
        return max(1, round(value * self._unit))

    def _font(self, size: float):
        return self._fonts.get(self._px(size))

    def _line_height(self, size: float, leading: float = 1.6) -> int:
        return math.ceil(self._px(size) * leading)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def rasterize_note(self, header: NoteHeader, visuals: Sequence[Visual]) -> Image.Image:
        boxes = [self._layout(visual) for visual in visuals]
        return self._compose(header, boxes)

    def rasterize_notice(self, header: NoteHeader, message: str) -> Image.Image:
        """Header plus a single line of text; used when a note fails to render."""

        return self._compose(header, [self._layout_text(TextVisual(text=message), color=MUTED)])

    def rasterize_cover(self, cover: CoverPage) -> Image.Image:
        # Floor keeps the cover inside one page slice.
        height = math.floor(self.width * self.page_aspect)
        canvas = Image.new("RGB", (self.width, height), WHITE)
        draw = ImageDraw.Draw(canvas)
        inset = self._px(10)
        draw.rounded_rectangle(
            (inset, inset, self.width - inset, height - inset),
            radius=self._px(12),
            outline=ACCENT,
            width=self._px(2),
        )
        inner = self.width - 2 * self._px(60)

        y = round(height * 0.3)
        y = self._centered(draw, cover.label.upper(), 12, ACCENT, y, inner)
        y += self._px(20)
        y = self._centered(draw, cover.project_name, 40, HEADING, y, inner, leading=1.2)
        y += self._px(20)
        bar = self._px(60)
        draw.rectangle(
            ((self.width - bar) // 2, y, (self.width + bar) // 2, y + self._px(4)),
            fill=ACCENT,
        )
        y += self._px(24)
        self._centered(draw, cover.description, 16, MUTED, y, round(inner * 0.8))

        footer_top = height - inset - self._px(150)
        draw.line((inset + self._px(30), footer_top, self.width - inset - self._px(30), footer_top), fill=RULE, width=1)
        y = footer_top + self._px(30)
        y = self._centered(draw, "Researcher ID", 12, MUTED, y, inner)
        y = self._centered(draw, cover.author, 14, HEADING, y, inner)
        y += self._px(12)
        self._centered(draw, f"Generated on {cover.generated_on}", 11, SUBTLE, y, inner)
        return canvas

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------
    def _compose(self, header: NoteHeader, boxes: list[_Box]) -> Image.Image:
        outer = self._px(10)
        padding = self._px(20)
        gap = self._px(15)
        content_width = self.width - 2 * (outer + padding)

        date_box = self._layout_text(TextVisual(text=header.date), size=10, color=MUTED, leading=1.4, width=content_width)
        title_box = self._layout_text(
            TextVisual(text=header.title), size=24, color=HEADING, leading=1.3, width=content_width
        )
        header_height = date_box.height + self._px(10) + title_box.height + self._px(15)

        visible = [box for box in boxes if box.height > 0]
        body_height = sum(box.height for box in visible) + gap * max(len(visible) - 1, 0)
        height = 2 * (outer + padding) + header_height + body_height

        canvas = Image.new("RGB", (self.width, height), WHITE)
        draw = ImageDraw.Draw(canvas)
        draw.rounded_rectangle(
            (outer, outer, self.width - outer - 1, height - outer - 1),
            radius=self._px(8),
            outline=RULE,
            width=1,
        )
        x = outer + padding
        y = outer + padding
        date_box.paint(canvas, draw, x, y)
        y += date_box.height + self._px(10)
        title_box.paint(canvas, draw, x, y)
        y += title_box.height + self._px(15)
        for box in visible:
            box.paint(canvas, draw, x, y)
            y += box.height + gap
        return canvas

    def _content_width(self) -> int:
        return self.width - 2 * (self._px(10) + self._px(20))

    def _layout(self, visual: Visual) -> _Box:
        match visual:
            case TextVisual():
                return self._layout_text(visual)
            case ImageVisual():
                return self._layout_image(visual)
            case TableVisual():
                return self._layout_table(visual)
            case ChartVisual():
                return self._layout_chart(visual)
            case _:
                assert_never(visual)

    def _centered(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        size: float,
        color: tuple[int, int, int],
        y: int,
        max_width: int,
        *,
        leading: float = 1.6,
    ) -> int:
        font = self._font(size)
        line_height = self._line_height(size, leading)
        for line in wrap_text(text, font, max_width):
            offset = (self.width - font.getlength(line)) / 2
            draw.text((offset, y), line, font=font, fill=color)
            y += line_height
        return y

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def _layout_text(
        self,
        visual: TextVisual,
        *,
        size: float = 14,
        color: tuple[int, int, int] = INK,
        leading: float = 1.6,
        width: int | None = None,
    ) -> _Box:
        if not visual.text.strip():
            return _Box(height=0, paint=lambda *_: None)
        font = self._font(size)
        line_height = self._line_height(size, leading)
        lines = wrap_text(visual.text, font, width or self._content_width())

        def paint(canvas: Image.Image, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
            for index, line in enumerate(lines):
                draw.text((x, y + index * line_height), line, font=font, fill=color)

        return _Box(height=line_height * len(lines), paint=paint)

    def _layout_image(self, visual: ImageVisual) -> _Box:
        target_width = max(1, round(self._content_width() * visual.width_percent / 100))
        try:
            image = decode_image_reference(visual.source)
        except ValueError as exc:
            logger.warning("Rendering placeholder for image: %s", exc)
            return self._layout_placeholder(target_width)

        ratio = target_width / image.width
        target_height = max(1, round(image.height * ratio))
        resized = image.resize((target_width, target_height))
        margin = self._px(10)

        def paint(canvas: Image.Image, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
            canvas.paste(resized, (x, y + margin))
            draw.rectangle((x, y + margin, x + target_width - 1, y + margin + target_height - 1), outline=RULE)

        return _Box(height=target_height + 2 * margin, paint=paint)

    def _layout_placeholder(self, target_width: int) -> _Box:
        height = max(self._px(60), round(target_width * 0.25))
        font = self._font(12)
        label = "Image unavailable"

        def paint(canvas: Image.Image, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
            draw.rectangle((x, y, x + target_width - 1, y + height - 1), fill=PLACEHOLDER_FILL, outline=RULE)
            text_x = x + (target_width - font.getlength(label)) / 2
            draw.text((text_x, y + (height - self._px(12)) / 2), label, font=font, fill=SUBTLE)

        return _Box(height=height, paint=paint)

    def _layout_table(self, visual: TableVisual) -> _Box:
        width = self._content_width()
        font = self._font(12)
        header_font = self._font(10)
        line_height = self._line_height(12, 1.4)
        cell_padding = self._px(6)
        columns = max(len(visual.column_headers), 1)
        header_column = max(self._px(48), width // 10)
        column_width = (width - header_column) // columns
        text_width = column_width - 2 * cell_padding

        header_height = self._line_height(10, 1.4) + 2 * cell_padding
        wrapped_rows = [[wrap_text(cell, font, text_width) for cell in row] for row in visual.rows]
        row_heights = [
            max((len(lines) for lines in row), default=1) * line_height + 2 * cell_padding
            for row in wrapped_rows
        ]
        total_width = header_column + column_width * columns
        total_height = header_height + sum(row_heights)

        def paint(canvas: Image.Image, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
            draw.rectangle((x, y, x + total_width, y + header_height), fill=HEADER_FILL)
            draw.rectangle((x, y, x + header_column, y + total_height), fill=HEADER_FILL)
            for index, label in enumerate(visual.column_headers):
                left = x + header_column + index * column_width
                offset = (column_width - header_font.getlength(label)) / 2
                draw.text((left + max(offset, cell_padding), y + cell_padding), label, font=header_font, fill=SUBTLE)
            top = y + header_height
            for row_index, (lines_per_cell, row_height) in enumerate(zip(wrapped_rows, row_heights)):
                label = visual.row_headers[row_index] if row_index < len(visual.row_headers) else ""
                offset = (header_column - header_font.getlength(label)) / 2
                draw.text((x + max(offset, cell_padding), top + cell_padding), label, font=header_font, fill=SUBTLE)
                for column_index, lines in enumerate(lines_per_cell):
                    left = x + header_column + column_index * column_width + cell_padding
                    for line_index, line in enumerate(lines):
                        draw.text((left, top + cell_padding + line_index * line_height), line, font=font, fill=INK)
                top += row_height
                draw.line((x, top, x + total_width, top), fill=RULE)
            draw.rectangle((x, y, x + total_width, y + total_height), outline=RULE)
            draw.line((x, y + header_height, x + total_width, y + header_height), fill=RULE)
            for index in range(columns + 1):
                left = x + header_column + index * column_width
                draw.line((left, y, left, y + total_height), fill=RULE)

        return _Box(height=total_height + 1, paint=paint)

    def _layout_chart(self, visual: ChartVisual) -> _Box:
        width = self._content_width()
        title_font = self._font(14)
        label_font = self._font(10)
        title_height = self._line_height(14) if visual.title else 0
        label_height = self._line_height(10)
        plot_height = round(width * 0.4)
        axis_gutter = self._px(56)
        x_label_rows = 2 if visual.x_axis_label else 1
        height = title_height + plot_height + label_height * x_label_rows + self._px(8)

        def paint(canvas: Image.Image, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
            if visual.title:
                offset = (width - title_font.getlength(visual.title)) / 2
                draw.text((x + offset, y), visual.title, font=title_font, fill=HEADING)
            left = x + axis_gutter
            top = y + title_height
            plot_width = width - axis_gutter
            bottom = top + plot_height
            draw.line((left, top, left, bottom), fill=MUTED, width=1)
            draw.line((left, bottom, left + plot_width, bottom), fill=MUTED, width=1)
            draw.text((x, top), _format_value(visual.value_max), font=label_font, fill=MUTED)
            draw.text((x, bottom - label_height), _format_value(visual.value_min), font=label_font, fill=MUTED)
            if visual.y_axis_label:
                draw.text((x, top + plot_height // 2), visual.y_axis_label, font=label_font, fill=MUTED)

            def to_pixels(point: tuple[float, float]) -> tuple[float, float]:
                return left + point[0] * plot_width, bottom - point[1] * plot_height

            coordinates = [to_pixels(point) for point in visual.points]
            slot = plot_width / max(len(coordinates), 1)
            if visual.chart_type == "bar":
                zero = bottom - visual.baseline * plot_height
                for px, py in coordinates:
                    half = slot * 0.3
                    draw.rectangle((px - half, min(py, zero), px + half, max(py, zero)), fill=ACCENT)
            else:
                if len(coordinates) > 1:
                    draw.line(coordinates, fill=ACCENT, width=self._px(2), joint="curve")
                radius = self._px(3)
                for px, py in coordinates:
                    draw.ellipse((px - radius, py - radius, px + radius, py + radius), fill=ACCENT)

            for (px, _), label in zip(coordinates, visual.labels):
                draw.text((px - label_font.getlength(label) / 2, bottom + self._px(4)), label, font=label_font, fill=MUTED)
            if visual.x_axis_label:
                offset = (plot_width - label_font.getlength(visual.x_axis_label)) / 2
                draw.text((left + offset, bottom + self._px(4) + label_height), visual.x_axis_label, font=label_font, fill=MUTED)

        return _Box(height=height, paint=paint)


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


__all__ = [
    "CoverPage",
    "NoteHeader",
    "Rasterizer",
    "decode_image_reference",
    "wrap_text",
]
