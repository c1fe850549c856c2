"""Tests for the project PDF export pipeline."""

from __future__ import annotations

import asyncio
import json
from datetime import date
from pathlib import Path

import fitz
import pytest
from PIL import Image

from research_notes import block_edits, block_store
from research_notes.exporter import (
    EmptyCollectionError,
    ExportError,
    ExportGuard,
    ExportInProgressError,
    export_project,
    report_filename,
)
from research_notes.pagination import PageGeometry, paginate
from research_notes.pdf_writer import build_pdf, mm_to_points
from research_notes.project_models import Note, Project
from research_notes.rasterizer import Rasterizer
from research_notes.serializer import encode


class FixedSizeRasterizer:
    """Produces blank surfaces of known size at 1 px per millimetre."""

    def __init__(self, note_height: int = 941) -> None:
        self.note_height = note_height
        self.notices: list[str] = []

    def rasterize_cover(self, cover):
        return Image.new("RGB", (190, 277), (255, 255, 255))

    def rasterize_note(self, header, visuals):
        return Image.new("RGB", (190, self.note_height), (255, 255, 255))

    def rasterize_notice(self, header, message):
        self.notices.append(message)
        return Image.new("RGB", (190, 40), (255, 255, 255))


class FailingRasterizer(FixedSizeRasterizer):
    def rasterize_note(self, header, visuals):
        raise RuntimeError("font exploded")


@pytest.fixture
def project() -> Project:
    return Project(id="p1", name="Wetland survey / 2024", description="")


@pytest.fixture
def notes() -> list[Note]:
    content = json.dumps([{"id": "a", "type": "text", "content": "Water level rose."}])
    return [Note(id="n1", project_id="p1", title="Day 1", content=content, date="2024-05-01")]


def _page_count(payload: bytes) -> int:
    document = fitz.open(stream=payload, filetype="pdf")
    try:
        return document.page_count
    finally:
        document.close()


def test_report_filename_is_sanitized() -> None:
    assert report_filename("Wetland survey / 2024") == "Wetland_survey_2024_Research_Report.pdf"
    assert report_filename("???") == "project_Research_Report.pdf"


def test_export_without_notes_fails(project: Project) -> None:
    with pytest.raises(EmptyCollectionError, match="No notes to export."):
        asyncio.run(export_project(project, [], rasterizer=FixedSizeRasterizer()))


def test_export_produces_cover_then_note_pages(project: Project, notes: list[Note]) -> None:
    result = asyncio.run(export_project(project, notes, rasterizer=FixedSizeRasterizer()))

    assert result.page_count == 5
    assert _page_count(result.payload) == 5
    assert result.filename == "Wetland_survey_2024_Research_Report.pdf"
    assert result.truncated_notes == []
    assert result.path is None


def test_export_reports_truncated_notes(project: Project, notes: list[Note]) -> None:
    rasterizer = FixedSizeRasterizer(note_height=277 * 4)

    result = asyncio.run(export_project(project, notes, rasterizer=rasterizer, max_pages_per_note=2))

    assert result.page_count == 4
    assert result.truncated_notes == ["n1"]


def test_note_render_failure_falls_back_to_notice(project: Project, notes: list[Note]) -> None:
    rasterizer = FailingRasterizer()

    result = asyncio.run(export_project(project, notes, rasterizer=rasterizer))

    assert result.page_count == 2
    assert rasterizer.notices == ["This note could not be rendered."]


def test_pdf_failure_is_wrapped(project: Project, notes: list[Note]) -> None:
    def broken_builder(pages, geometry):
        raise OSError("disk full")

    with pytest.raises(ExportError, match="Failed to export PDF: disk full") as excinfo:
        asyncio.run(export_project(project, notes, rasterizer=FixedSizeRasterizer(), pdf_builder=broken_builder))

    assert isinstance(excinfo.value.__cause__, OSError)


def test_export_writes_file_without_overwriting(project: Project, notes: list[Note], tmp_path: Path) -> None:
    first = asyncio.run(export_project(project, notes, rasterizer=FixedSizeRasterizer(), export_dir=tmp_path))
    second = asyncio.run(export_project(project, notes, rasterizer=FixedSizeRasterizer(), export_dir=tmp_path))

    assert first.path == tmp_path / "Wetland_survey_2024_Research_Report.pdf"
    assert second.path == tmp_path / "Wetland_survey_2024_Research_Report_1.pdf"
    assert first.path.read_bytes() == first.payload


def test_export_with_real_rasterizer(project: Project, notes: list[Note]) -> None:
    rasterizer = Rasterizer(width_px=380)

    result = asyncio.run(
        export_project(project, notes, author="researcher-7", rasterizer=rasterizer, generated_on=date(2024, 5, 2))
    )

    assert result.page_count == 2
    assert _page_count(result.payload) == 2


def test_build_pdf_uses_page_geometry() -> None:
    geometry = PageGeometry()
    pages, _ = paginate(Image.new("RGB", (190, 300)), geometry)
    document = fitz.open(stream=build_pdf(pages, geometry), filetype="pdf")
    try:
        first = document[0]
        assert first.rect.width == pytest.approx(mm_to_points(210))
        assert first.rect.height == pytest.approx(mm_to_points(297))
        assert document.page_count == 2
    finally:
        document.close()


def test_export_guard_rejects_concurrent_export() -> None:
    guard = ExportGuard()

    with guard.reserve("p1"):
        assert guard.is_running("p1")
        with pytest.raises(ExportInProgressError):
            with guard.reserve("p1"):
                pass
        with guard.reserve("p2"):
            pass

    assert not guard.is_running("p1")


class BrokenCoverRasterizer(FixedSizeRasterizer):
    def rasterize_cover(self, cover):
        raise OSError("cannot open resource")


class BrokenNoticeRasterizer(FailingRasterizer):
    def rasterize_notice(self, header, message):
        raise RuntimeError("notice failed too")


def test_cover_failure_aborts_export(project: Project, notes: list[Note]) -> None:
    with pytest.raises(ExportError, match="cannot open resource") as excinfo:
        asyncio.run(export_project(project, notes, rasterizer=BrokenCoverRasterizer()))

    assert isinstance(excinfo.value.__cause__, OSError)


def test_failed_fallback_notice_aborts_export(project: Project, notes: list[Note]) -> None:
    with pytest.raises(ExportError, match="notice failed too"):
        asyncio.run(export_project(project, notes, rasterizer=BrokenNoticeRasterizer()))


def test_export_note_with_single_point_line_chart(project: Project) -> None:
    doc = block_store.append_chart(block_store.new_document())
    chart_id = doc.blocks[1].id
    for _ in range(2):
        doc = block_store.mutate_chart(doc, chart_id, block_edits.remove_point(0))
    note = Note(id="c1", project_id="p1", title="Chart", content=encode(doc), date="2024-05-03")

    result = asyncio.run(export_project(project, [note], rasterizer=Rasterizer(width_px=380)))

    assert result.page_count == 2
    assert _page_count(result.payload) == 2
