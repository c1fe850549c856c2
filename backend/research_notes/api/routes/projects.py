"""Project, note and export endpoints backed by the note store."""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response

from research_notes.api.deps import get_export_guard, get_note_store, get_page_geometry, get_rasterizer
from research_notes.api.routes.documents import document_response
from research_notes.core.config import Settings, get_settings
from research_notes.document_operations import apply_operation
from research_notes.document_text import filter_notes, summarize
from research_notes.exporter import (
    EmptyCollectionError,
    ExportError,
    ExportGuard,
    ExportInProgressError,
    export_project,
)
from research_notes.pagination import PageGeometry
from research_notes.rasterizer import Rasterizer
from research_notes.schemas import (
    ContentRequest,
    ExportRequest,
    NoteListItem,
    NoteListResponse,
    NoteResponse,
    OperationRequest,
)
from research_notes.serializer import decode, document_to_payload, encode
from research_notes.storage import NotFoundError, NoteStore, StorageError

logger = logging.getLogger("research_notes.backend.projects")

router = APIRouter(tags=["projects"])


def _store_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


@router.get("/projects/{project_id}/notes", response_model=NoteListResponse)
async def list_project_notes(
    project_id: str,
    search: str | None = None,
    store: NoteStore = Depends(get_note_store),
) -> NoteListResponse:
    try:
        notes = await store.list_notes(project_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc

    items = []
    for note in filter_notes(notes, search):
        summary = summarize(note.content)
        items.append(
            NoteListItem(id=note.id, title=note.title, date=note.date, summary=summary.text, image=summary.image)
        )
    return NoteListResponse(project_id=project_id, notes=items)


@router.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(note_id: str, store: NoteStore = Depends(get_note_store)) -> NoteResponse:
    try:
        note = await store.get_note(note_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc

    document = decode(note.content)
    return NoteResponse(
        id=note.id,
        title=note.title,
        date=note.date,
        content=encode(document),
        blocks=document_to_payload(document),
    )


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def save_note(
    note_id: str,
    payload: ContentRequest,
    store: NoteStore = Depends(get_note_store),
) -> NoteResponse:
    try:
        await store.save(note_id, payload.content)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return await get_note(note_id, store)


@router.post("/notes/{note_id}/operations", response_model=NoteResponse)
async def apply_note_operation(
    note_id: str,
    payload: OperationRequest,
    store: NoteStore = Depends(get_note_store),
) -> NoteResponse:
    """Load a note, apply one editor operation and save the result."""

    try:
        note = await store.get_note(note_id)
        document = apply_operation(decode(note.content), payload.operation)
        await store.save(note_id, encode(document))
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc

    response = document_response(document)
    return NoteResponse(id=note.id, title=note.title, date=note.date, content=response.content, blocks=response.blocks)


@router.post("/projects/{project_id}/export")
async def export_project_report(
    project_id: str,
    payload: ExportRequest | None = None,
    store: NoteStore = Depends(get_note_store),
    guard: ExportGuard = Depends(get_export_guard),
    geometry: PageGeometry = Depends(get_page_geometry),
    rasterizer: Rasterizer = Depends(get_rasterizer),
    app_settings: Settings = Depends(get_settings),
) -> Response:
    """Render every note of the project into one PDF report."""

    try:
        with guard.reserve(project_id):
            project = await store.get_project(project_id)
            notes = await store.list_notes(project_id)
            result = await export_project(
                project,
                notes,
                author=payload.author if payload else None,
                geometry=geometry,
                rasterizer=rasterizer,
                max_pages_per_note=app_settings.max_pages_per_note,
                export_dir=app_settings.export_dir,
                suffix=app_settings.report_suffix,
            )
    except ExportInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    except EmptyCollectionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExportError as exc:
        logger.exception("Export of project %s failed", project_id)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}",
        "X-Page-Count": str(result.page_count),
    }
    if result.truncated_notes:
        headers["X-Truncated-Notes"] = ",".join(result.truncated_notes)
    return Response(content=result.payload, media_type="application/pdf", headers=headers)
