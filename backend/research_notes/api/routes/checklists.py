"""Project checklist endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from research_notes.api.deps import get_note_store
from research_notes.api.routes.projects import _store_error
from research_notes.checklists import ChecklistError, DuplicateItemError
from research_notes.project_models import Checklist, ChecklistItem
from research_notes.schemas import (
    ChecklistCreateRequest,
    ChecklistItemCreateRequest,
    ChecklistItemResponse,
    ChecklistListResponse,
    ChecklistResponse,
)
from research_notes.storage import ChecklistStore, NotFoundError, StorageError

logger = logging.getLogger("research_notes.backend.checklists")

router = APIRouter(tags=["checklists"])


def _item_response(item: ChecklistItem) -> ChecklistItemResponse:
    return ChecklistItemResponse(id=item.id, checklist_id=item.checklist_id, text=item.text, completed=item.completed)


def checklist_response(checklist: Checklist) -> ChecklistResponse:
    return ChecklistResponse(
        id=checklist.id,
        project_id=checklist.project_id,
        title=checklist.title,
        created_at=checklist.created_at,
        items=[_item_response(item) for item in checklist.items],
        completed=checklist.completed_count,
        total=len(checklist.items),
    )


@router.get("/projects/{project_id}/checklists", response_model=ChecklistListResponse)
async def list_checklists(project_id: str, store: ChecklistStore = Depends(get_note_store)) -> ChecklistListResponse:
    try:
        checklists = await store.list_checklists(project_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return ChecklistListResponse(project_id=project_id, checklists=[checklist_response(c) for c in checklists])


@router.post("/projects/{project_id}/checklists", response_model=ChecklistResponse, status_code=201)
async def create_checklist(
    project_id: str,
    payload: ChecklistCreateRequest,
    store: ChecklistStore = Depends(get_note_store),
) -> ChecklistResponse:
    try:
        checklist = await store.add_checklist(project_id, payload.title)
    except ChecklistError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return checklist_response(checklist)


@router.delete("/checklists/{checklist_id}", status_code=204)
async def delete_checklist(checklist_id: str, store: ChecklistStore = Depends(get_note_store)) -> Response:
    """Delete a checklist together with its items."""

    try:
        await store.delete_checklist(checklist_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    logger.info("Deleted checklist %s", checklist_id)
    return Response(status_code=204)


@router.post("/checklists/{checklist_id}/items", response_model=ChecklistItemResponse, status_code=201)
async def create_checklist_item(
    checklist_id: str,
    payload: ChecklistItemCreateRequest,
    store: ChecklistStore = Depends(get_note_store),
) -> ChecklistItemResponse:
    try:
        item = await store.add_item(checklist_id, payload.text)
    except DuplicateItemError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ChecklistError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return _item_response(item)


@router.post("/checklist-items/{item_id}/toggle", response_model=ChecklistItemResponse)
async def toggle_checklist_item(item_id: str, store: ChecklistStore = Depends(get_note_store)) -> ChecklistItemResponse:
    try:
        item = await store.toggle_item(item_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return _item_response(item)


@router.delete("/checklist-items/{item_id}", status_code=204)
async def delete_checklist_item(item_id: str, store: ChecklistStore = Depends(get_note_store)) -> Response:
    try:
        await store.delete_item(item_id)
    except (NotFoundError, StorageError) as exc:
        raise _store_error(exc) from exc
    return Response(status_code=204)
