"""Slicing of a tall rendered surface into page-sized pieces.

The surface is scaled uniformly so that its width fills the page content
width. ``pixels_per_page`` source pixels then fill one page height, and the
surface is cut top to bottom into slices of at most that height. Slicing
stops once the number of slices exceeds a safety ceiling, so one surface
yields at most ``max_slices + 1`` pages.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_SLICES = 20
# Remainders below this many pixels are floating-point residue, not content.
_RESIDUE_PX = 1e-6


class RasterSource(Protocol):
    """Anything with a pixel size that can be cropped, e.g. a Pillow image."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def crop(self, box: tuple[int, int, int, int]) -> Any: ...


@dataclass(slots=True, frozen=True)
class PageGeometry:
    """Output page size and margins in millimetres."""

    width_mm: float = 210.0
    height_mm: float = 297.0
    margin_mm: float = 10.0

    @property
    def content_width_mm(self) -> float:
        return self.width_mm - 2 * self.margin_mm

    @property
    def content_height_mm(self) -> float:
        return self.height_mm - 2 * self.margin_mm

    @classmethod
    def from_settings(cls, settings: Any) -> "PageGeometry":
        return cls(
            width_mm=settings.page_width_mm,
            height_mm=settings.page_height_mm,
            margin_mm=settings.page_margin_mm,
        )


@dataclass(slots=True, frozen=True)
class SliceSpec:
    """A vertical range of the source surface, in source pixels."""

    index: int
    source_y: float
    height: float

    @property
    def top(self) -> int:
        return round(self.source_y)

    @property
    def bottom(self) -> int:
        return round(self.source_y + self.height)


@dataclass(slots=True, frozen=True)
class SlicePlan:
    scale: float
    pixels_per_page: float
    slices: tuple[SliceSpec, ...]
    truncated: bool = False

    @property
    def covered_height(self) -> float:
        return sum(spec.height for spec in self.slices)


@dataclass(slots=True)
class PageSlice:
    """One output page worth of raster."""

    spec: SliceSpec
    image: Any
    width_mm: float
    height_mm: float


def plan_slices(
    width: float,
    height: float,
    geometry: PageGeometry,
    *,
    max_slices: int = DEFAULT_MAX_SLICES,
) -> SlicePlan:
    """Return the slices needed to lay a ``width`` x ``height`` surface onto pages."""

    if width <= 0:
        raise ValueError(f"Surface width must be positive, got {width}")
    if max_slices < 1:
        raise ValueError(f"max_slices must be at least 1, got {max_slices}")

    scale = geometry.content_width_mm / width
    pixels_per_page = geometry.content_height_mm / scale

    slices: list[SliceSpec] = []
    remaining = float(height)
    source_y = 0.0
    truncated = False
    while remaining > _RESIDUE_PX:
        # Slicing stops once the count has gone past the ceiling.
        if len(slices) > max_slices:
            truncated = True
            break
        slice_height = min(remaining, pixels_per_page)
        slices.append(SliceSpec(index=len(slices), source_y=source_y, height=slice_height))
        source_y += slice_height
        remaining -= slice_height

    if truncated:
        logger.warning(
            "Surface of %.0f px exceeds %s pages; %.0f px dropped",
            height,
            max_slices,
            remaining,
        )
    return SlicePlan(
        scale=scale,
        pixels_per_page=pixels_per_page,
        slices=tuple(slices),
        truncated=truncated,
    )


def crop_slice(surface: RasterSource, spec: SliceSpec) -> Any:
    top = min(spec.top, max(surface.height - 1, 0))
    bottom = min(max(spec.bottom, top + 1), surface.height)
    return surface.crop((0, top, surface.width, bottom))


def paginate(
    surface: RasterSource,
    geometry: PageGeometry,
    *,
    max_slices: int = DEFAULT_MAX_SLICES,
) -> tuple[list[PageSlice], SlicePlan]:
    """Cut ``surface`` into page slices and return them with the plan used."""

    plan = plan_slices(surface.width, surface.height, geometry, max_slices=max_slices)
    pages = [
        PageSlice(
            spec=spec,
            image=crop_slice(surface, spec),
            width_mm=geometry.content_width_mm,
            height_mm=spec.height * plan.scale,
        )
        for spec in plan.slices
    ]
    return pages, plan


__all__ = [
    "DEFAULT_MAX_SLICES",
    "PageGeometry",
    "PageSlice",
    "RasterSource",
    "SlicePlan",
    "SliceSpec",
    "crop_slice",
    "paginate",
    "plan_slices",
]
