"""Assembly of page slices into a PDF document with PyMuPDF."""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Iterable

import fitz  # PyMuPDF

from .pagination import PageGeometry, PageSlice

logger = logging.getLogger(__name__)

_POINTS_PER_MM = 72.0 / 25.4


def mm_to_points(value: float) -> float:
    return value * _POINTS_PER_MM


def _png_bytes(image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def build_pdf(pages: Iterable[PageSlice], geometry: PageGeometry) -> bytes:
    """Return a PDF with one page per slice, each placed at the top margin."""

    document = fitz.open()
    try:
        page_width = mm_to_points(geometry.width_mm)
        page_height = mm_to_points(geometry.height_mm)
        margin = mm_to_points(geometry.margin_mm)
        for page_slice in pages:
            page = document.new_page(width=page_width, height=page_height)
            rect = fitz.Rect(
                margin,
                margin,
                margin + mm_to_points(page_slice.width_mm),
                margin + mm_to_points(page_slice.height_mm),
            )
            page.insert_image(rect, stream=_png_bytes(page_slice.image), keep_proportion=False)
        logger.debug("Assembled PDF with %s pages", document.page_count)
        return document.tobytes(deflate=True)
    finally:
        document.close()


__all__ = ["build_pdf", "mm_to_points"]
