"""Pure operations over a :class:`NoteDocument`.

Every operation returns a new document. Requests that cannot be applied
(unknown or stale block id, wrong block type, an edit breaking a structural
invariant) return the given document unchanged instead of raising.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable

from .block_edits import ChartEdit, TableEdit, default_chart, default_table
from .document_models import (
    DEFAULT_IMAGE_WIDTH,
    Block,
    ChartBlock,
    ImageBlock,
    NoteDocument,
    TableBlock,
    TextBlock,
    is_valid_chart,
    is_valid_table,
)

logger = logging.getLogger(__name__)


def new_block_id() -> str:
    return uuid.uuid4().hex


def new_document() -> NoteDocument:
    """Return a document holding a single empty text block."""

    return NoteDocument(blocks=(TextBlock(id=new_block_id()),))


def find_block(doc: NoteDocument, block_id: str) -> Block | None:
    for block in doc.blocks:
        if block.id == block_id:
            return block
    return None


def _replace_block(
    doc: NoteDocument,
    block_id: str,
    update: Callable[[Block], Block | None],
) -> NoteDocument:
    """Swap the block with ``block_id`` for ``update(block)``.

    ``update`` returns ``None`` (or the same block) to signal a no-op.
    """

    for index, block in enumerate(doc.blocks):
        if block.id != block_id:
            continue
        updated = update(block)
        if updated is None or updated is block:
            return doc
        blocks = list(doc.blocks)
        blocks[index] = updated
        return NoteDocument(blocks=tuple(blocks))
    logger.debug("Block %s not found; ignoring update", block_id)
    return doc


def _append_with_trailing_text(doc: NoteDocument, block: Block) -> NoteDocument:
    trailing = TextBlock(id=new_block_id())
    return NoteDocument(blocks=(*doc.blocks, block, trailing))


def edit_text(doc: NoteDocument, block_id: str, content: str) -> NoteDocument:
    def update(block: Block) -> Block | None:
        if not isinstance(block, TextBlock):
            return None
        return replace(block, content=content)

    return _replace_block(doc, block_id, update)


def append_image(doc: NoteDocument, image_ref: str) -> NoteDocument:
    image = ImageBlock(id=new_block_id(), content=image_ref, width=DEFAULT_IMAGE_WIDTH)
    return _append_with_trailing_text(doc, image)


def append_table(doc: NoteDocument) -> NoteDocument:
    return _append_with_trailing_text(doc, TableBlock(id=new_block_id(), table_data=default_table()))


def append_chart(doc: NoteDocument) -> NoteDocument:
    return _append_with_trailing_text(doc, ChartBlock(id=new_block_id(), chart_data=default_chart()))


def resize_image(doc: NoteDocument, block_id: str, width: float) -> NoteDocument:
    """Store ``width`` on an image block as given; clamping happens at draw time."""

    def update(block: Block) -> Block | None:
        if not isinstance(block, ImageBlock):
            return None
        return replace(block, width=width)

    return _replace_block(doc, block_id, update)


def remove_block(doc: NoteDocument, block_id: str) -> NoteDocument:
    """Remove the first block carrying ``block_id``.

    Decoded documents may repeat an id; only one block is removed per call
    and the document never ends up empty.
    """

    index = next((position for position, block in enumerate(doc.blocks) if block.id == block_id), None)
    if index is None:
        return doc

    if len(doc.blocks) == 1:
        only = doc.blocks[0]
        if isinstance(only, TextBlock):
            if only.content == "":
                return doc
            return NoteDocument(blocks=(replace(only, content=""),))
        # The sequence may never become empty.
        return new_document()

    remaining = doc.blocks[:index] + doc.blocks[index + 1 :]
    return NoteDocument(blocks=remaining)


def mutate_table(doc: NoteDocument, block_id: str, edit: TableEdit) -> NoteDocument:
    def update(block: Block) -> Block | None:
        if not isinstance(block, TableBlock):
            return None
        table = edit(block.table_data)
        if table is block.table_data:
            return None
        if not is_valid_table(table):
            logger.debug("Rejected table edit on %s: invariant violated", block_id)
            return None
        return replace(block, table_data=table)

    return _replace_block(doc, block_id, update)


def mutate_chart(doc: NoteDocument, block_id: str, edit: ChartEdit) -> NoteDocument:
    def update(block: Block) -> Block | None:
        if not isinstance(block, ChartBlock):
            return None
        chart = edit(block.chart_data)
        if chart is block.chart_data:
            return None
        if not is_valid_chart(chart):
            logger.debug("Rejected chart edit on %s: invariant violated", block_id)
            return None
        return replace(block, chart_data=chart)

    return _replace_block(doc, block_id, update)


__all__ = [
    "append_chart",
    "append_image",
    "append_table",
    "edit_text",
    "find_block",
    "mutate_chart",
    "mutate_table",
    "new_block_id",
    "new_document",
    "remove_block",
    "resize_image",
]
