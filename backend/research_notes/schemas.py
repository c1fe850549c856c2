"""Pydantic schemas for the persisted block format and the HTTP API."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Persisted block format
# ---------------------------------------------------------------------------
class TableDataSchema(_CamelModel):
    rows: list[list[str]] = Field(..., description="Cell values row by row")
    col_headers: list[str] | None = Field(default=None, alias="colHeaders")
    row_headers: list[str] | None = Field(default=None, alias="rowHeaders")

    @model_validator(mode="after")
    def _check_shape(self) -> "TableDataSchema":
        if not self.rows or not self.rows[0]:
            raise ValueError("Table must contain at least one row and one column")
        width = len(self.rows[0])
        if any(len(row) != width for row in self.rows):
            raise ValueError("Table rows must all have the same length")
        if self.col_headers is not None and len(self.col_headers) != width:
            raise ValueError("Column headers do not match the column count")
        if self.row_headers is not None and len(self.row_headers) != len(self.rows):
            raise ValueError("Row headers do not match the row count")
        return self


class ChartPointSchema(_CamelModel):
    name: str
    value: float


class ChartDataSchema(_CamelModel):
    type: Literal["line", "bar"] = "line"
    title: str | None = None
    x_axis_label: str | None = Field(default=None, alias="xAxisLabel")
    y_axis_label: str | None = Field(default=None, alias="yAxisLabel")
    data: list[ChartPointSchema] = Field(..., min_length=1)


class TextBlockSchema(_CamelModel):
    id: str
    type: Literal["text"] = "text"
    content: str = ""


class ImageBlockSchema(_CamelModel):
    id: str
    type: Literal["image"] = "image"
    content: str
    width: float = 100


class TableBlockSchema(_CamelModel):
    id: str
    type: Literal["table"] = "table"
    table_data: TableDataSchema = Field(..., alias="tableData")


class ChartBlockSchema(_CamelModel):
    id: str
    type: Literal["chart"] = "chart"
    chart_data: ChartDataSchema = Field(..., alias="chartData")


BlockSchema = Annotated[
    Union[TextBlockSchema, ImageBlockSchema, TableBlockSchema, ChartBlockSchema],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------
class ContentRequest(BaseModel):
    content: str = Field(..., description="Persisted note body: block array or legacy text")


class BlocksRequest(BaseModel):
    blocks: list[BlockSchema] = Field(..., description="Blocks in reading order")


class DocumentResponse(BaseModel):
    content: str = Field(..., description="Canonical persisted form of the document")
    blocks: list[dict[str, Any]] = Field(..., description="Decoded blocks in reading order")


class EditTextOperation(BaseModel):
    op: Literal["edit_text"]
    block_id: str
    content: str


class AppendImageOperation(BaseModel):
    op: Literal["append_image"]
    image: str = Field(..., description="Image reference, usually a data URI")


class AppendTableOperation(BaseModel):
    op: Literal["append_table"]


class AppendChartOperation(BaseModel):
    op: Literal["append_chart"]


class ResizeImageOperation(BaseModel):
    op: Literal["resize_image"]
    block_id: str
    width: float


class RemoveBlockOperation(BaseModel):
    op: Literal["remove_block"]
    block_id: str


class TableOperation(BaseModel):
    op: Literal["table"]
    block_id: str
    action: Literal[
        "update_cell",
        "update_column_header",
        "update_row_header",
        "add_row",
        "remove_row",
        "add_column",
        "remove_column",
    ]
    row: int | None = None
    column: int | None = None
    value: str = ""


class ChartOperation(BaseModel):
    op: Literal["chart"]
    block_id: str
    action: Literal[
        "set_type",
        "toggle_type",
        "set_title",
        "set_axis_labels",
        "update_point",
        "add_point",
        "remove_point",
    ]
    index: int | None = None
    kind: Literal["line", "bar"] | None = None
    title: str | None = None
    x_axis_label: str | None = None
    y_axis_label: str | None = None
    name: str | None = None
    value: float | None = None


DocumentOperation = Annotated[
    Union[
        EditTextOperation,
        AppendImageOperation,
        AppendTableOperation,
        AppendChartOperation,
        ResizeImageOperation,
        RemoveBlockOperation,
        TableOperation,
        ChartOperation,
    ],
    Field(discriminator="op"),
]


class ApplyOperationRequest(BaseModel):
    content: str = Field(default="", description="Current persisted document")
    operation: DocumentOperation


class OperationRequest(BaseModel):
    operation: DocumentOperation


class RenderResponse(BaseModel):
    visuals: list[dict[str, Any]] = Field(..., description="Visual description per block")


class PreviewResponse(BaseModel):
    text: str = Field(..., description="Searchable plain text of the note")
    summary: str = Field(..., description="Card preview text")
    image: str | None = Field(default=None, description="First image reference, if any")


# ---------------------------------------------------------------------------
# Projects and notes
# ---------------------------------------------------------------------------
class NoteListItem(BaseModel):
    id: str
    title: str
    date: str
    summary: str
    image: str | None = None


class NoteListResponse(BaseModel):
    project_id: str
    notes: list[NoteListItem]


class NoteResponse(DocumentResponse):
    id: str
    title: str
    date: str


class ChecklistItemResponse(BaseModel):
    id: str
    checklist_id: str
    text: str
    completed: bool


class ChecklistResponse(BaseModel):
    id: str
    project_id: str
    title: str
    created_at: str | None = None
    items: list[ChecklistItemResponse]
    completed: int = Field(..., description="Number of completed items")
    total: int = Field(..., description="Number of items")


class ChecklistListResponse(BaseModel):
    project_id: str
    checklists: list[ChecklistResponse]


class ChecklistCreateRequest(BaseModel):
    title: str = Field(..., description="Checklist title, e.g. Lab Supplies")


class ChecklistItemCreateRequest(BaseModel):
    text: str = Field(..., description="Item text; must be unique within the checklist ignoring case")


class ExportRequest(BaseModel):
    author: str | None = Field(default=None, description="Shown on the cover page")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Current API status")
    storage: str = Field(..., description="Active storage backend")


__all__ = [
    "AppendChartOperation",
    "AppendImageOperation",
    "AppendTableOperation",
    "ApplyOperationRequest",
    "BlockSchema",
    "BlocksRequest",
    "ChartBlockSchema",
    "ChartDataSchema",
    "ChartOperation",
    "ChartPointSchema",
    "ChecklistCreateRequest",
    "ChecklistItemCreateRequest",
    "ChecklistItemResponse",
    "ChecklistListResponse",
    "ChecklistResponse",
    "ContentRequest",
    "DocumentOperation",
    "DocumentResponse",
    "EditTextOperation",
    "ExportRequest",
    "HealthResponse",
    "ImageBlockSchema",
    "NoteListItem",
    "NoteListResponse",
    "NoteResponse",
    "OperationRequest",
    "PreviewResponse",
    "RemoveBlockOperation",
    "RenderResponse",
    "ResizeImageOperation",
    "TableBlockSchema",
    "TableDataSchema",
    "TableOperation",
    "TextBlockSchema",
]
