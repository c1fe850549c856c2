"""Encoding of documents into the persisted string and back.

The persisted form is a JSON array of blocks. Anything that does not look
like such an array, or fails to parse or validate, is a legacy plain-text
note and decodes to a single text block holding the raw string.
"""
from __future__ import annotations

import json
import logging
from typing import Any, assert_never

from pydantic import TypeAdapter, ValidationError

from .block_store import new_document
from .document_models import (
    Block,
    ChartBlock,
    ChartData,
    ChartPoint,
    ImageBlock,
    NoteDocument,
    TableBlock,
    TableData,
    TextBlock,
)
from .schemas import (
    BlockSchema,
    ChartBlockSchema,
    ChartDataSchema,
    ChartPointSchema,
    ImageBlockSchema,
    TableBlockSchema,
    TableDataSchema,
    TextBlockSchema,
)

logger = logging.getLogger(__name__)

LEGACY_BLOCK_ID = "legacy"

_blocks_adapter: TypeAdapter[list[BlockSchema]] = TypeAdapter(list[BlockSchema])


def looks_structured(raw: str) -> bool:
    """Return ``True`` when ``raw`` looks like a persisted block array."""

    stripped = raw.strip()
    return stripped.startswith("[") and stripped.endswith("]")


def legacy_document(raw: str) -> NoteDocument:
    return NoteDocument(blocks=(TextBlock(id=LEGACY_BLOCK_ID, content=raw),))


# ---------------------------------------------------------------------------
# Domain -> schema
# ---------------------------------------------------------------------------
def block_to_schema(block: Block) -> TextBlockSchema | ImageBlockSchema | TableBlockSchema | ChartBlockSchema:
    match block:
        case TextBlock():
            return TextBlockSchema(id=block.id, content=block.content)
        case ImageBlock():
            return ImageBlockSchema(id=block.id, content=block.content, width=block.width)
        case TableBlock():
            table = block.table_data
            return TableBlockSchema(
                id=block.id,
                table_data=TableDataSchema(
                    rows=[list(row) for row in table.rows],
                    col_headers=list(table.col_headers) if table.col_headers is not None else None,
                    row_headers=list(table.row_headers) if table.row_headers is not None else None,
                ),
            )
        case ChartBlock():
            chart = block.chart_data
            return ChartBlockSchema(
                id=block.id,
                chart_data=ChartDataSchema(
                    type=chart.type,
                    title=chart.title,
                    x_axis_label=chart.x_axis_label,
                    y_axis_label=chart.y_axis_label,
                    data=[ChartPointSchema(name=point.name, value=point.value) for point in chart.data],
                ),
            )
        case _:
            assert_never(block)


def block_to_payload(block: Block) -> dict[str, Any]:
    """Return the JSON-ready mapping of one block, variant fields only."""

    return block_to_schema(block).model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Schema -> domain
# ---------------------------------------------------------------------------
def block_from_schema(schema: TextBlockSchema | ImageBlockSchema | TableBlockSchema | ChartBlockSchema) -> Block:
    match schema:
        case TextBlockSchema():
            return TextBlock(id=schema.id, content=schema.content)
        case ImageBlockSchema():
            return ImageBlock(id=schema.id, content=schema.content, width=schema.width)
        case TableBlockSchema():
            table = schema.table_data
            return TableBlock(
                id=schema.id,
                table_data=TableData(
                    rows=[list(row) for row in table.rows],
                    col_headers=table.col_headers,
                    row_headers=table.row_headers,
                ),
            )
        case ChartBlockSchema():
            chart = schema.chart_data
            return ChartBlock(
                id=schema.id,
                chart_data=ChartData(
                    data=[ChartPoint(name=point.name, value=point.value) for point in chart.data],
                    type=chart.type,
                    title=chart.title,
                    x_axis_label=chart.x_axis_label,
                    y_axis_label=chart.y_axis_label,
                ),
            )
        case _:
            assert_never(schema)


def document_from_schemas(schemas: list[Any]) -> NoteDocument:
    if not schemas:
        return new_document()
    return NoteDocument(blocks=tuple(block_from_schema(schema) for schema in schemas))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def encode(doc: NoteDocument) -> str:
    """Return the canonical persisted string for ``doc``."""

    payload = [block_to_payload(block) for block in doc.blocks]
    return json.dumps(payload, ensure_ascii=False)


def decode_structured(raw: str) -> NoteDocument | None:
    """Return the block document in ``raw``, or ``None`` when it is legacy text."""

    if not looks_structured(raw):
        return None
    try:
        schemas = _blocks_adapter.validate_json(raw.strip())
    except (ValidationError, ValueError) as exc:
        logger.debug("Structured note failed to decode, treating as legacy text: %s", exc)
        return None
    return document_from_schemas(schemas)


def decode(raw: str) -> NoteDocument:
    """Return the document stored in ``raw``; never raises for malformed input."""

    document = decode_structured(raw)
    if document is None:
        return legacy_document(raw)
    return document


def document_to_payload(doc: NoteDocument) -> list[dict[str, Any]]:
    return [block_to_payload(block) for block in doc.blocks]


__all__ = [
    "LEGACY_BLOCK_ID",
    "block_from_schema",
    "block_to_payload",
    "block_to_schema",
    "decode",
    "decode_structured",
    "document_from_schemas",
    "document_to_payload",
    "encode",
    "legacy_document",
    "looks_structured",
]
