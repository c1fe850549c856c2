"""Dispatch of API operation payloads onto the block store."""
from __future__ import annotations

from typing import assert_never

from . import block_edits, block_store
from .block_edits import ChartEdit, TableEdit
from .document_models import NoteDocument
from .schemas import (
    AppendChartOperation,
    AppendImageOperation,
    AppendTableOperation,
    ChartOperation,
    EditTextOperation,
    RemoveBlockOperation,
    ResizeImageOperation,
    TableOperation,
)

Operation = (
    EditTextOperation
    | AppendImageOperation
    | AppendTableOperation
    | AppendChartOperation
    | ResizeImageOperation
    | RemoveBlockOperation
    | TableOperation
    | ChartOperation
)


def _unchanged(payload):
    return payload


def _table_edit(operation: TableOperation) -> TableEdit:
    row = operation.row
    column = operation.column
    match operation.action:
        case "update_cell":
            if row is None or column is None:
                return _unchanged
            return block_edits.update_cell(row, column, operation.value)
        case "update_column_header":
            if column is None:
                return _unchanged
            return block_edits.update_column_header(column, operation.value)
        case "update_row_header":
            if row is None:
                return _unchanged
            return block_edits.update_row_header(row, operation.value)
        case "add_row":
            return block_edits.add_row()
        case "remove_row":
            return _unchanged if row is None else block_edits.remove_row(row)
        case "add_column":
            return block_edits.add_column()
        case "remove_column":
            return _unchanged if column is None else block_edits.remove_column(column)
        case _:
            assert_never(operation.action)


def _chart_edit(operation: ChartOperation) -> ChartEdit:
    index = operation.index
    match operation.action:
        case "set_type":
            return _unchanged if operation.kind is None else block_edits.set_chart_type(operation.kind)
        case "toggle_type":
            return block_edits.toggle_chart_type()
        case "set_title":
            return block_edits.set_title(operation.title)
        case "set_axis_labels":
            return block_edits.set_axis_labels(operation.x_axis_label, operation.y_axis_label)
        case "update_point":
            if index is None:
                return _unchanged
            return block_edits.update_point(index, name=operation.name, value=operation.value)
        case "add_point":
            return block_edits.add_point(operation.name, operation.value or 0.0)
        case "remove_point":
            return _unchanged if index is None else block_edits.remove_point(index)
        case _:
            assert_never(operation.action)


def apply_operation(doc: NoteDocument, operation: Operation) -> NoteDocument:
    """Apply one editor operation; invalid requests leave ``doc`` unchanged."""

    match operation:
        case EditTextOperation():
            return block_store.edit_text(doc, operation.block_id, operation.content)
        case AppendImageOperation():
            return block_store.append_image(doc, operation.image)
        case AppendTableOperation():
            return block_store.append_table(doc)
        case AppendChartOperation():
            return block_store.append_chart(doc)
        case ResizeImageOperation():
            return block_store.resize_image(doc, operation.block_id, operation.width)
        case RemoveBlockOperation():
            return block_store.remove_block(doc, operation.block_id)
        case TableOperation():
            return block_store.mutate_table(doc, operation.block_id, _table_edit(operation))
        case ChartOperation():
            return block_store.mutate_chart(doc, operation.block_id, _chart_edit(operation))
        case _:
            assert_never(operation)


__all__ = ["Operation", "apply_operation"]
