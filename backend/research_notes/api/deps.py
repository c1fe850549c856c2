"""Common dependency functions for API routes."""

from functools import lru_cache

from fastapi import Depends

from research_notes.core.config import Settings, get_settings, settings
from research_notes.exporter import ExportGuard
from research_notes.pagination import PageGeometry
from research_notes.rasterizer import Rasterizer
from research_notes.storage import InMemoryNoteStore, NoteStore, RestNoteStore


@lru_cache
def get_note_store() -> NoteStore:
    if settings.storage_backend == "rest":
        return RestNoteStore(
            settings.storage_url,
            settings.storage_api_key,
            timeout=settings.storage_timeout,
        )
    return InMemoryNoteStore()


@lru_cache
def get_export_guard() -> ExportGuard:
    return ExportGuard()


def get_page_geometry(app_settings: Settings = Depends(get_settings)) -> PageGeometry:
    return PageGeometry.from_settings(app_settings)


def get_rasterizer(
    app_settings: Settings = Depends(get_settings),
    geometry: PageGeometry = Depends(get_page_geometry),
) -> Rasterizer:
    return Rasterizer(
        app_settings.render_width_px,
        page_aspect=geometry.content_height_mm / geometry.content_width_mm,
        font_path=app_settings.font_path,
    )
