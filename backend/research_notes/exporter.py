"""Export of a project's notes into a paginated PDF report."""
from __future__ import annotations

import asyncio
import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterator, Sequence

from .pagination import DEFAULT_MAX_SLICES, PageGeometry, PageSlice, paginate
from .pdf_writer import build_pdf
from .project_models import Note, Project
from .rasterizer import CoverPage, NoteHeader, Rasterizer
from .renderers import render_document
from .serializer import decode

logger = logging.getLogger(__name__)

DEFAULT_REPORT_SUFFIX = "_Research_Report.pdf"
RENDER_FAILURE_NOTICE = "This note could not be rendered."

PdfBuilder = Callable[[Sequence[PageSlice], PageGeometry], bytes]


class ExportError(RuntimeError):
    """Raised when the final PDF cannot be produced."""


class EmptyCollectionError(ValueError):
    """Raised when a project without notes is exported."""


class ExportInProgressError(RuntimeError):
    """Raised when an export for the same project is already running."""


@dataclass(slots=True)
class ExportResult:
    filename: str
    payload: bytes
    page_count: int
    truncated_notes: list[str] = field(default_factory=list)
    path: Path | None = None


class ExportGuard:
    """Keeps at most one export per project in flight."""

    def __init__(self) -> None:
        self._active: set[str] = set()

    def is_running(self, project_id: str) -> bool:
        return project_id in self._active

    @contextmanager
    def reserve(self, project_id: str) -> Iterator[None]:
        if project_id in self._active:
            raise ExportInProgressError(f"Export for project {project_id} is already running")
        self._active.add(project_id)
        try:
            yield
        finally:
            self._active.discard(project_id)


def _sanitize_stem(value: str) -> str:
    """Return a filesystem-safe stem for the generated report."""

    sanitized = re.sub(r"[^\w-]+", "_", value).strip("._")
    return sanitized or "project"


def report_filename(project_name: str, suffix: str = DEFAULT_REPORT_SUFFIX) -> str:
    return f"{_sanitize_stem(project_name)}{suffix}"


def _next_available_path(directory: Path, filename: str) -> Path:
    candidate = directory / filename
    if not candidate.exists():
        return candidate

    stem = candidate.stem
    suffix = candidate.suffix
    counter = 1
    while True:
        updated = directory / f"{stem}_{counter}{suffix}"
        if not updated.exists():
            return updated
        counter += 1


def _write_export(directory: Path, filename: str, payload: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    target = _next_available_path(directory, filename)
    target.write_bytes(payload)
    return target


def _rasterize_note(rasterizer: Rasterizer, note: Note):
    """Rasterize one note, falling back to its header plus a notice.

    Only a failure of the fallback itself propagates.
    """

    header = NoteHeader(date=note.date, title=note.title)
    try:
        return rasterizer.rasterize_note(header, render_document(decode(note.content)))
    except Exception:
        logger.exception("Failed to render note %s; exporting its header only", note.id)
        return rasterizer.rasterize_notice(header, RENDER_FAILURE_NOTICE)


async def _terminal_step(project: Project, step: str, func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking export step off the event loop; any failure aborts the export."""

    try:
        return await asyncio.to_thread(func, *args)
    except Exception as exc:
        logger.exception("%s failed for project %s", step, project.id)
        raise ExportError(f"Failed to export PDF: {exc}") from exc


async def export_project(
    project: Project,
    notes: Sequence[Note],
    *,
    author: str | None = None,
    geometry: PageGeometry | None = None,
    rasterizer: Rasterizer | None = None,
    max_pages_per_note: int = DEFAULT_MAX_SLICES,
    export_dir: Path | None = None,
    suffix: str = DEFAULT_REPORT_SUFFIX,
    generated_on: date | None = None,
    pdf_builder: PdfBuilder = build_pdf,
) -> ExportResult:
    """Render the cover and every note, paginate them and assemble the PDF.

    Notes are exported in the given order. Slicing of a note stops once it
    has produced more than ``max_pages_per_note`` pages; such notes are listed
    in :attr:`ExportResult.truncated_notes`. A failure to draw the cover, to
    draw a note's fallback notice, or to assemble the PDF raises
    :class:`ExportError`.
    """

    if not notes:
        raise EmptyCollectionError("No notes to export.")

    geometry = geometry or PageGeometry()
    if rasterizer is None:
        rasterizer = Rasterizer(page_aspect=geometry.content_height_mm / geometry.content_width_mm)

    logger.info("Exporting project %s with %s notes", project.id, len(notes))
    cover = CoverPage(
        project_name=project.name,
        description=project.description or "No description provided.",
        author=author or "Unknown User",
        generated_on=(generated_on or date.today()).isoformat(),
    )
    cover_surface = await _terminal_step(project, "Cover page", rasterizer.rasterize_cover, cover)
    pages, _ = paginate(cover_surface, geometry, max_slices=1)

    truncated: list[str] = []
    for note in notes:
        surface = await _terminal_step(project, f"Note {note.id}", _rasterize_note, rasterizer, note)
        note_pages, plan = paginate(surface, geometry, max_slices=max_pages_per_note)
        if plan.truncated:
            logger.warning(
                "Note %s went past the %s page ceiling; trailing content was dropped",
                note.id,
                max_pages_per_note,
            )
            truncated.append(note.id)
        pages.extend(note_pages)

    filename = report_filename(project.name, suffix)
    payload = await _terminal_step(project, "PDF assembly", pdf_builder, pages, geometry)
    path = None
    if export_dir is not None:
        path = await _terminal_step(project, "Writing the report", _write_export, export_dir, filename, payload)

    logger.info("Exported project %s: %s pages", project.id, len(pages))
    return ExportResult(
        filename=filename,
        payload=payload,
        page_count=len(pages),
        truncated_notes=truncated,
        path=path,
    )


__all__ = [
    "DEFAULT_REPORT_SUFFIX",
    "EmptyCollectionError",
    "ExportError",
    "ExportGuard",
    "ExportInProgressError",
    "ExportResult",
    "export_project",
    "report_filename",
]
