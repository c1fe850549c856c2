"""Unit tests for the pure block store operations."""

from __future__ import annotations

import pytest

from research_notes import block_edits, block_store
from research_notes.document_models import ChartBlock, ImageBlock, NoteDocument, TableBlock, TableData, TextBlock
from research_notes.serializer import decode


@pytest.fixture
def document() -> NoteDocument:
    return block_store.new_document()


def test_new_document_has_single_empty_text_block(document: NoteDocument) -> None:
    assert len(document) == 1
    only = document.blocks[0]
    assert isinstance(only, TextBlock)
    assert only.content == ""


def test_edit_text_replaces_content(document: NoteDocument) -> None:
    block_id = document.blocks[0].id

    updated = block_store.edit_text(document, block_id, "Observed growth")

    assert updated.blocks[0].content == "Observed growth"
    assert document.blocks[0].content == ""


def test_edit_text_ignores_unknown_and_non_text_blocks(document: NoteDocument) -> None:
    with_image = block_store.append_image(document, "data:image/png;base64,AAAA")
    image_id = with_image.blocks[1].id

    assert block_store.edit_text(with_image, "missing", "x") is with_image
    assert block_store.edit_text(with_image, image_id, "x") is with_image


def test_append_image_adds_trailing_text_block(document: NoteDocument) -> None:
    updated = block_store.append_image(document, "data:image/png;base64,AAAA")

    assert [block.type for block in updated.blocks] == ["text", "image", "text"]
    image = updated.blocks[1]
    assert isinstance(image, ImageBlock)
    assert image.width == 100
    assert image.content == "data:image/png;base64,AAAA"
    assert updated.blocks[2].content == ""


def test_append_table_uses_default_grid(document: NoteDocument) -> None:
    updated = block_store.append_table(document)

    table = updated.blocks[1]
    assert isinstance(table, TableBlock)
    assert table.table_data.rows == [["", "", ""], ["", "", ""]]
    assert table.table_data.col_headers == ["A", "B", "C"]
    assert table.table_data.row_headers == ["1", "2"]
    assert isinstance(updated.blocks[-1], TextBlock)


def test_append_chart_seeds_three_points(document: NoteDocument) -> None:
    updated = block_store.append_chart(document)

    chart = updated.blocks[1]
    assert isinstance(chart, ChartBlock)
    assert chart.chart_data.type == "line"
    assert len(chart.chart_data.data) == 3
    assert isinstance(updated.blocks[-1], TextBlock)


def test_block_ids_are_unique(document: NoteDocument) -> None:
    updated = block_store.append_chart(block_store.append_table(block_store.append_image(document, "x")))

    assert len(set(updated.ids)) == len(updated.ids)


def test_resize_image_stores_value_unclamped(document: NoteDocument) -> None:
    updated = block_store.append_image(document, "img")
    image_id = updated.blocks[1].id

    resized = block_store.resize_image(updated, image_id, 250)

    assert resized.blocks[1].width == 250
    assert block_store.resize_image(resized, updated.blocks[0].id, 50) is resized


def test_remove_block_preserves_order(document: NoteDocument) -> None:
    updated = block_store.append_table(block_store.append_image(document, "img"))
    ids = updated.ids

    removed = block_store.remove_block(updated, ids[1])

    assert removed.ids == [ids[0], ids[2], ids[3], ids[4]]


def test_remove_last_text_block_clears_content_and_is_idempotent(document: NoteDocument) -> None:
    block_id = document.blocks[0].id
    typed = block_store.edit_text(document, block_id, "draft")

    cleared = block_store.remove_block(typed, block_id)
    cleared_again = block_store.remove_block(cleared, block_id)

    assert len(cleared) == 1
    assert cleared.blocks[0].content == ""
    assert cleared.blocks[0].id == block_id
    assert cleared_again == cleared


def test_remove_unknown_block_is_noop(document: NoteDocument) -> None:
    assert block_store.remove_block(document, "stale-id") is document


def test_remove_lone_non_text_block_keeps_document_non_empty() -> None:
    lone_image = NoteDocument(blocks=(ImageBlock(id="img", content="x"),))

    updated = block_store.remove_block(lone_image, "img")

    assert len(updated) == 1
    assert isinstance(updated.blocks[0], TextBlock)


def test_mutate_table_applies_edit(document: NoteDocument) -> None:
    updated = block_store.append_table(document)
    table_id = updated.blocks[1].id

    edited = block_store.mutate_table(updated, table_id, block_edits.update_cell(0, 1, "42"))

    assert edited.blocks[1].table_data.rows[0] == ["", "42", ""]
    assert updated.blocks[1].table_data.rows[0] == ["", "", ""]


def test_mutate_table_rejects_invalid_result(document: NoteDocument) -> None:
    updated = block_store.append_table(document)
    table_id = updated.blocks[1].id

    def break_shape(table):
        return TableData(rows=[["a"], ["b", "c"]])

    assert block_store.mutate_table(updated, table_id, break_shape) is updated


def test_mutate_table_ignores_wrong_block_type(document: NoteDocument) -> None:
    updated = block_store.append_chart(document)
    chart_id = updated.blocks[1].id

    assert block_store.mutate_table(updated, chart_id, block_edits.add_row()) is updated


def test_mutate_chart_applies_edit_and_keeps_minimum(document: NoteDocument) -> None:
    updated = block_store.append_chart(document)
    chart_id = updated.blocks[1].id

    for _ in range(5):
        updated = block_store.mutate_chart(updated, chart_id, block_edits.remove_point(0))

    assert len(updated.blocks[1].chart_data.data) == 1
    toggled = block_store.mutate_chart(updated, chart_id, block_edits.toggle_chart_type())
    assert toggled.blocks[1].chart_data.type == "bar"


def test_remove_block_with_repeated_id_removes_first_only() -> None:
    doc = decode(
        '[{"id": "a", "type": "text", "content": "x"}, {"id": "a", "type": "image", "content": "y"}]'
    )

    once = block_store.remove_block(doc, "a")
    twice = block_store.remove_block(once, "a")

    assert [block.type for block in once.blocks] == ["image"]
    assert len(twice) == 1
    assert isinstance(twice.blocks[0], TextBlock)
