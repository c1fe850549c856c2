"""Import of uploaded documents into note blocks."""
from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import Iterable

from docx import Document
from docx.document import Document as _Document
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.table import Table
from docx.text.paragraph import Paragraph

from .block_store import new_block_id, new_document
from .document_models import Block, NoteDocument, TableBlock, TableData, TextBlock

SUPPORTED_SUFFIXES = {".docx", ".txt", ".md"}

# Markdown separator rows such as ``|---|:---:|``.
_SEPARATOR_RE = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")


class UnsupportedDocumentError(RuntimeError):
    """Raised when a document cannot be imported."""


def _iter_docx_blocks(document: _Document) -> Iterable[Paragraph | Table]:
    """Yield paragraphs and tables in document order."""

    body = document.element.body
    for element in body.iterchildren():
        if isinstance(element, CT_P):
            yield Paragraph(element, document)
        elif isinstance(element, CT_Tbl):
            yield Table(element, document)


def _table_to_rows(table: Table) -> list[list[str]]:
    rows: list[list[str]] = []
    for row in table.rows:
        cells: list[str] = []
        for cell in row.cells:
            fragments = [
                paragraph.text.strip()
                for paragraph in cell.paragraphs
                if paragraph.text.strip()
            ]
            cells.append("\n".join(fragments))
        if any(cell for cell in cells):
            rows.append(cells)
    return rows


def _rectangular(rows: list[list[str]]) -> list[list[str]]:
    width = max((len(row) for row in rows), default=0)
    return [row + [""] * (width - len(row)) for row in rows]


class _BlockCollector:
    """Groups consecutive lines into text blocks between tables."""

    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self._lines: list[str] = []

    def add_line(self, line: str) -> None:
        self._lines.append(line)

    def add_table(self, rows: list[list[str]]) -> None:
        rows = _rectangular(rows)
        if not rows or not rows[0]:
            return
        self.flush()
        self.blocks.append(TableBlock(id=new_block_id(), table_data=TableData(rows=rows)))

    def flush(self) -> None:
        text = "\n".join(self._lines).strip("\n")
        self._lines = []
        if text.strip():
            self.blocks.append(TextBlock(id=new_block_id(), content=text))

    def document(self) -> NoteDocument:
        self.flush()
        if not self.blocks:
            return new_document()
        if not isinstance(self.blocks[-1], TextBlock):
            self.blocks.append(TextBlock(id=new_block_id()))
        return NoteDocument(blocks=tuple(self.blocks))


def _parse_docx(payload: bytes) -> NoteDocument:
    document = Document(BytesIO(payload))
    collector = _BlockCollector()
    for item in _iter_docx_blocks(document):
        if isinstance(item, Paragraph):
            collector.add_line(item.text.rstrip())
        elif isinstance(item, Table):
            collector.add_table(_table_to_rows(item))
    return collector.document()


def _parse_plain_text(payload: bytes) -> NoteDocument:
    text = payload.decode("utf-8", "ignore")
    collector = _BlockCollector()
    current_table: list[list[str]] = []

    def flush_table() -> None:
        nonlocal current_table
        if current_table:
            collector.add_table(current_table)
            current_table = []

    for line in text.splitlines():
        stripped = line.strip()
        if "|" in stripped and stripped.strip("|").strip():
            if _SEPARATOR_RE.match(stripped):
                continue
            columns = [column.strip() for column in stripped.strip("|").split("|")]
            current_table.append(columns)
            continue
        flush_table()
        collector.add_line(line.rstrip())

    flush_table()
    return collector.document()


def load_document(filename: str, payload: bytes) -> NoteDocument:
    """Build a note document from an uploaded DOCX, TXT or Markdown file."""

    suffix = Path(filename or "").suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedDocumentError("Only DOCX, TXT and MD files can be imported")
    if suffix == ".docx":
        return _parse_docx(payload)
    return _parse_plain_text(payload)


__all__ = ["SUPPORTED_SUFFIXES", "UnsupportedDocumentError", "load_document"]
