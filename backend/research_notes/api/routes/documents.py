"""Stateless endpoints over persisted note bodies."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, File, HTTPException, UploadFile

from research_notes.document_models import NoteDocument
from research_notes.document_operations import apply_operation
from research_notes.document_processing import UnsupportedDocumentError, load_document
from research_notes.document_text import plain_text, summarize
from research_notes.renderers import render_document
from research_notes.schemas import (
    ApplyOperationRequest,
    BlocksRequest,
    ContentRequest,
    DocumentResponse,
    PreviewResponse,
    RenderResponse,
)
from research_notes.serializer import decode, document_from_schemas, document_to_payload, encode

logger = logging.getLogger("research_notes.backend.documents")

router = APIRouter(prefix="/documents", tags=["documents"])


def document_response(document: NoteDocument) -> DocumentResponse:
    return DocumentResponse(content=encode(document), blocks=document_to_payload(document))


@router.post("/decode", response_model=DocumentResponse)
def decode_document(payload: ContentRequest) -> DocumentResponse:
    return document_response(decode(payload.content))


@router.post("/encode", response_model=DocumentResponse)
def encode_document(payload: BlocksRequest) -> DocumentResponse:
    return document_response(document_from_schemas(payload.blocks))


@router.post("/apply", response_model=DocumentResponse)
def apply_document_operation(payload: ApplyOperationRequest) -> DocumentResponse:
    """Apply one editor operation and return the updated document."""

    document = apply_operation(decode(payload.content), payload.operation)
    return document_response(document)


@router.post("/render", response_model=RenderResponse)
def render(payload: ContentRequest) -> RenderResponse:
    visuals = render_document(decode(payload.content))
    return RenderResponse(visuals=[asdict(visual) for visual in visuals])


@router.post("/preview", response_model=PreviewResponse)
def preview(payload: ContentRequest) -> PreviewResponse:
    summary = summarize(payload.content)
    return PreviewResponse(text=plain_text(payload.content), summary=summary.text, image=summary.image)


@router.post("/import", response_model=DocumentResponse)
async def import_document(file: UploadFile = File(...)) -> DocumentResponse:
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    try:
        document = load_document(file.filename or "", contents)
    except UnsupportedDocumentError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Failed to import document '%s'", file.filename)
        raise HTTPException(status_code=400, detail="Could not read the uploaded document") from exc
    return document_response(document)
